"""String enums for the build and payment vocabularies."""

from enum import StrEnum


class Platform(StrEnum):
    ANDROID = "android"
    IOS = "ios"


class BuildStatus(StrEnum):
    QUEUED = "queued"
    BUILDING = "building"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELED = "canceled"

    @property
    def is_terminal(self) -> bool:
        return self in (BuildStatus.COMPLETED, BuildStatus.FAILED, BuildStatus.CANCELED)


class PaymentStatus(StrEnum):
    PENDING = "pending"
    COMPLETED = "completed"


class NavigationType(StrEnum):
    TABS = "tabs"
    DRAWER = "drawer"


class ResizeMode(StrEnum):
    CONTAIN = "contain"
    COVER = "cover"
    NATIVE = "native"


class ArtifactKind(StrEnum):
    APK = "apk"
    AAB = "aab"
    IPA = "ipa"
