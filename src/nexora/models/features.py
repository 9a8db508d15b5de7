"""
Nexora Feature Table

This module is the single authoritative description of every feature the CLI
can manage: which config field it touches, which directories it owns, which
packages it pulls in, which template sets render it and which provider it
injects into the application entry point.
"""

from typing import Dict, Literal, Optional, Tuple
from pydantic import BaseModel, ConfigDict, Field

from ..exceptions import UnknownFeature


FeatureDomain = Literal["navigation", "state", "ui", "storage", "flag"]


class ProviderSpec(BaseModel):
    """An entry-point wrapper injected for a feature."""

    model_config = ConfigDict(frozen=True)

    imports: Tuple[str, ...] = Field(description="Import statements the provider needs")
    open_tag: str = Field(description="Opening JSX tag")
    close_tag: str = Field(description="Closing JSX tag")


class FeatureSpec(BaseModel):
    """Static metadata for one feature key."""

    model_config = ConfigDict(frozen=True)

    key: str
    label: str
    domain: FeatureDomain
    directories: Tuple[str, ...] = ()
    packages: Tuple[str, ...] = ()
    dev_packages: Tuple[str, ...] = ()
    template_sets: Tuple[str, ...] = ()
    provider: Optional[ProviderSpec] = None
    fallback: Optional[str] = Field(
        default=None,
        description="Feature whose templates take over when this one is disabled"
    )

    @property
    def is_exclusive(self) -> bool:
        return self.domain in ("state", "ui", "storage")

    @property
    def is_navigation(self) -> bool:
        return self.domain == "navigation"


NAVIGATION_TYPES: Tuple[str, ...] = ("stack", "tabs", "drawer")
STATE_CHOICES: Tuple[str, ...] = ("redux", "zustand", "none")
UI_CHOICES: Tuple[str, ...] = ("styled-components", "tailwind", "none")
STORAGE_CHOICES: Tuple[str, ...] = ("async-storage", "mmkv")
FLAG_FEATURES: Tuple[str, ...] = ("theme", "localization", "firebase", "api", "auth", "fonts")
STRUCTURAL_FIELDS: Tuple[str, ...] = ("navigation", "state", "ui", "storage")

# Outermost first
PROVIDER_ORDER: Tuple[str, ...] = ("theme", "localization", "redux", "navigation")

NAVIGATION_CORE_PACKAGES: Tuple[str, ...] = (
    "@react-navigation/native",
    "react-native-screens",
    "react-native-safe-area-context",
)

FIREBASE_PACKAGES: Tuple[str, ...] = (
    "@react-native-firebase/app",
    "@react-native-firebase/auth",
    "@react-native-firebase/firestore",
    "@react-native-firebase/storage",
    "@react-native-firebase/messaging",
    "@react-native-firebase/crashlytics",
    "@react-native-firebase/analytics",
)

ASYNC_STORAGE_PACKAGE = "@react-native-async-storage/async-storage"

# Auth ships its own token handling unless Firebase Auth is present
AUTH_STANDALONE_PACKAGES: Tuple[str, ...] = ("jwt-decode", ASYNC_STORAGE_PACKAGE)

_NAVIGATION_PROVIDER = ProviderSpec(
    imports=(
        "import { NavigationContainer } from '@react-navigation/native';",
        "import AppNavigator from './src/navigation';",
    ),
    open_tag="<NavigationContainer>",
    close_tag="</NavigationContainer>",
)


FEATURES: Dict[str, FeatureSpec] = {
    spec.key: spec for spec in (
        FeatureSpec(
            key="navigation",
            label="Navigation (React Navigation)",
            domain="navigation",
            directories=("src/navigation",),
            packages=NAVIGATION_CORE_PACKAGES,
            template_sets=("navigation",),
            provider=_NAVIGATION_PROVIDER,
        ),
        FeatureSpec(
            key="drawer",
            label="Drawer navigation",
            domain="navigation",
            directories=("src/navigation",),
            packages=(
                "@react-navigation/drawer",
                "react-native-gesture-handler",
                "react-native-reanimated",
            ),
            template_sets=("navigation", "drawer"),
            provider=_NAVIGATION_PROVIDER,
        ),
        FeatureSpec(
            key="tabs",
            label="Bottom tabs navigation",
            domain="navigation",
            directories=("src/navigation",),
            packages=("@react-navigation/bottom-tabs",),
            template_sets=("navigation", "tabs"),
            provider=_NAVIGATION_PROVIDER,
        ),
        FeatureSpec(
            key="stack",
            label="Stack navigation",
            domain="navigation",
            directories=("src/navigation",),
            packages=("@react-navigation/native-stack",),
            template_sets=("navigation", "stack"),
            provider=_NAVIGATION_PROVIDER,
        ),
        FeatureSpec(
            key="auth",
            label="Authentication flow",
            domain="flag",
            directories=("src/screens/auth",),
            template_sets=("auth",),
        ),
        FeatureSpec(
            key="firebase",
            label="Firebase integration",
            domain="flag",
            directories=("src/services/firebase",),
            packages=FIREBASE_PACKAGES,
            template_sets=("firebase",),
        ),
        FeatureSpec(
            key="api",
            label="REST API service layer (axios)",
            domain="flag",
            directories=("src/services/api",),
            packages=("axios",),
            template_sets=("api",),
        ),
        FeatureSpec(
            key="redux",
            label="Redux Toolkit state management",
            domain="state",
            directories=("src/store",),
            packages=("@reduxjs/toolkit", "react-redux"),
            template_sets=("redux",),
            provider=ProviderSpec(
                imports=(
                    "import { Provider } from 'react-redux';",
                    "import { store } from './src/store';",
                ),
                open_tag="<Provider store={store}>",
                close_tag="</Provider>",
            ),
        ),
        FeatureSpec(
            key="zustand",
            label="Zustand state management",
            domain="state",
            directories=("src/store",),
            packages=("zustand",),
            template_sets=("zustand",),
        ),
        FeatureSpec(
            key="localization",
            label="Localization (i18next)",
            domain="flag",
            directories=("src/localization",),
            packages=("i18next", "react-i18next"),
            template_sets=("localization",),
            provider=ProviderSpec(
                imports=("import { LocalizationProvider } from './src/localization';",),
                open_tag="<LocalizationProvider>",
                close_tag="</LocalizationProvider>",
            ),
        ),
        FeatureSpec(
            key="theme",
            label="Theme system (light/dark)",
            domain="flag",
            directories=("src/config/theme",),
            template_sets=("theme",),
            provider=ProviderSpec(
                imports=("import { ThemeProvider } from './src/config/theme';",),
                open_tag="<ThemeProvider>",
                close_tag="</ThemeProvider>",
            ),
        ),
        FeatureSpec(
            key="tailwind",
            label="Tailwind (tailwind-rn)",
            domain="ui",
            packages=("tailwind-rn",),
            dev_packages=("tailwindcss", "postcss", "autoprefixer"),
            template_sets=("tailwind",),
        ),
        FeatureSpec(
            key="styled-components",
            label="styled-components",
            domain="ui",
            packages=("styled-components",),
            dev_packages=("@types/styled-components",),
            template_sets=("styled-components",),
        ),
        FeatureSpec(
            key="mmkv",
            label="MMKV storage",
            domain="storage",
            packages=("react-native-mmkv",),
            template_sets=("mmkv",),
            fallback="async-storage",
        ),
        FeatureSpec(
            key="fonts",
            label="Custom fonts",
            domain="flag",
            directories=("src/assets/fonts",),
            template_sets=("fonts",),
        ),
    )
}

# Not user-addable: the storage backend active whenever mmkv is not
ASYNC_STORAGE = FeatureSpec(
    key="async-storage",
    label="AsyncStorage",
    domain="storage",
    packages=(ASYNC_STORAGE_PACKAGE,),
    template_sets=("async-storage",),
)

VALID_FEATURES: Tuple[str, ...] = tuple(FEATURES)


def validate_feature(feature: str) -> FeatureSpec:
    """
    Return the FeatureSpec for a user-facing feature key.

    Raises:
        UnknownFeature: If the key is outside the closed vocabulary
    """
    spec = FEATURES.get(feature)
    if spec is None:
        raise UnknownFeature(feature, VALID_FEATURES)
    return spec


def get_feature_spec(feature: str) -> FeatureSpec:
    """Like validate_feature, but also resolves internal keys such as async-storage."""
    if feature == ASYNC_STORAGE.key:
        return ASYNC_STORAGE
    return validate_feature(feature)
