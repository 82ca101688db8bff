"""Codemagic pipeline definition (codemagic.yaml) generation."""

import yaml

from appify.models.build_config import BuildConfig
from appify.models.enums import Platform

WORKFLOW_IDS: dict[Platform, str] = {
    Platform.ANDROID: "android-workflow",
    Platform.IOS: "ios-workflow",
}

INSTANCE_TYPE = "mac_mini_m2"
NODE_VERSION = "18.17.0"


def _common_scripts(platform: str) -> list[dict]:
    return [
        {"name": "Install dependencies", "script": "npm install"},
        {"name": "Install Expo CLI", "script": "npm install -g expo-cli eas-cli"},
        {"name": "Generate native projects", "script": f"npx expo prebuild --platform {platform} --clean"},
    ]


def _android_workflow(config: BuildConfig) -> dict:
    return {
        "name": f"{config.app_name} Android Build",
        "instance_type": INSTANCE_TYPE,
        "max_build_duration": 120,
        "environment": {
            "groups": ["app_credentials"],
            "vars": {"PACKAGE_NAME": config.package_id},
            "node": NODE_VERSION,
            "java": 17,
        },
        "scripts": _common_scripts("android") + [
            {"name": "Set up local.properties", "script": 'echo "sdk.dir=$ANDROID_SDK_ROOT" > android/local.properties'},
            {"name": "Build Android", "script": "cd android && ./gradlew assembleRelease bundleRelease"},
        ],
        "artifacts": [
            "android/app/build/outputs/**/*.apk",
            "android/app/build/outputs/**/*.aab",
        ],
    }


def _ios_workflow(config: BuildConfig) -> dict:
    return {
        "name": f"{config.app_name} iOS Build",
        "instance_type": INSTANCE_TYPE,
        "max_build_duration": 120,
        "environment": {
            "groups": ["app_credentials", "ios_credentials"],
            "vars": {"BUNDLE_ID": config.package_id},
            "node": NODE_VERSION,
            "xcode": "latest",
            "cocoapods": "default",
        },
        "scripts": _common_scripts("ios") + [
            {"name": "Install CocoaPods", "script": "cd ios && pod install"},
            {"name": "Set up code signing", "script": "xcode-project use-profiles"},
            {"name": "Build iOS", "script": "xcode-project build-ipa --workspace ios/*.xcworkspace --scheme App"},
        ],
        "artifacts": ["build/ios/ipa/*.ipa"],
    }


def build_workflow_config(config: BuildConfig) -> dict:
    return {
        "workflows": {
            WORKFLOW_IDS[Platform.ANDROID]: _android_workflow(config),
            WORKFLOW_IDS[Platform.IOS]: _ios_workflow(config),
        }
    }


def render_workflow_config(config: BuildConfig) -> str:
    return yaml.safe_dump(build_workflow_config(config), sort_keys=False, allow_unicode=True)
