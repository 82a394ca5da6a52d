"""API key vault and UI preferences persisted in the local store."""

import logging
from enum import Enum

from texdraft.models import Provider
from texdraft.storage.backends import KeyValueStore, StorageKey

logger = logging.getLogger(__name__)

PROVIDER_KEY_SLOTS: dict[Provider, StorageKey] = {
    Provider.CLAUDE: StorageKey.CLAUDE_API_KEY,
    Provider.PERPLEXITY: StorageKey.PERPLEXITY_API_KEY,
    Provider.MISTRAL: StorageKey.MISTRAL_API_KEY,
}


class ApiKeyVault:
    """Per-provider API keys and the selected provider.

    Loaded once from the store; changed only through save(), which writes
    through immediately.
    """

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store
        self._keys: dict[Provider, str] = {provider: "" for provider in Provider}
        self._selected = Provider.CLAUDE
        self.load()

    def load(self) -> None:
        """Read keys and the selected provider from the store."""
        for provider, slot in PROVIDER_KEY_SLOTS.items():
            self._keys[provider] = self._store.get(slot.value) or ""

        saved = self._store.get(StorageKey.API_PROVIDER.value)
        if saved:
            try:
                self._selected = Provider(saved)
            except ValueError:
                logger.warning(f"Ignoring unknown saved provider: {saved}")

    @property
    def selected_provider(self) -> Provider:
        return self._selected

    def get(self, provider: Provider) -> str:
        """Return the key for a provider, or an empty string."""
        return self._keys[Provider(provider)]

    def has_key(self, provider: Provider) -> bool:
        return bool(self.get(provider))

    def save(self, keys: dict[Provider, str], selected_provider: Provider | None = None) -> None:
        """Replace keys and persist them.

        Args:
            keys: New key per provider. Providers not listed keep their key.
            selected_provider: Provider to use by default. Unchanged if None.
        """
        for provider, key in keys.items():
            self._keys[Provider(provider)] = key
        if selected_provider is not None:
            self._selected = Provider(selected_provider)

        for provider, slot in PROVIDER_KEY_SLOTS.items():
            self._store.set(slot.value, self._keys[provider])
        self._store.set(StorageKey.API_PROVIDER.value, self._selected.value)

        configured = [p.value for p in Provider if self._keys[p]]
        logger.info(f"Saved API keys (configured: {', '.join(configured) or 'none'})")


class Theme(str, Enum):
    """Color theme preference."""

    LIGHT = "light"
    DARK = "dark"
    SYSTEM = "system"


class ThemePreference:
    """Theme choice persisted under the theme key. Defaults to dark."""

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    def get(self) -> Theme:
        saved = self._store.get(StorageKey.THEME.value)
        try:
            return Theme(saved) if saved else Theme.DARK
        except ValueError:
            return Theme.DARK

    def set(self, theme: Theme) -> None:
        self._store.set(StorageKey.THEME.value, Theme(theme).value)
