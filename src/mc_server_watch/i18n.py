"""
Internationalization (i18n) module for the server watch system.

Provides translations for all user-facing messages in German (de) and
English (en), and renders change events to text.
"""

from typing import Optional

from .enums import EventKind
from .events import Event


# Supported languages
SUPPORTED_LANGUAGES = frozenset({"de", "en"})
DEFAULT_LANGUAGE = "en"


# Translation dictionary with all messages
# Structure: {message_key: {language_code: translated_message}}
TRANSLATIONS: dict[str, dict[str, str]] = {
    # Event messages
    "event.server_online": {
        "de": "Server ist online: {text}",
        "en": "Server is online: {text}",
    },
    "event.server_offline": {
        "de": "Server ist offline: {text}",
        "en": "Server is offline: {text}",
    },
    "event.players_joined": {
        "de": "{count} Spieler beigetreten",
        "en": "{count} player(s) joined",
    },
    "event.players_left": {
        "de": "{count} Spieler gegangen",
        "en": "{count} player(s) left",
    },
    "event.player_joined": {
        "de": "Spieler {name} ist beigetreten",
        "en": "Player {name} joined",
    },
    "event.player_left": {
        "de": "Spieler {name} hat den Server verlassen",
        "en": "Player {name} left",
    },

    # Status messages
    "status.online": {
        "de": "Online",
        "en": "Online",
    },
    "status.offline": {
        "de": "Offline",
        "en": "Offline",
    },
    "status.connection_failed": {
        "de": "Verbindung fehlgeschlagen ({error})",
        "en": "Connection failed ({error})",
    },

    # Probe output
    "probe.summary": {
        "de": "{target}: {status}, {online}/{max} Spieler, Version {version}, {ping} ms",
        "en": "{target}: {status}, {online}/{max} players, version {version}, {ping} ms",
    },
    "probe.motd": {
        "de": "MOTD: {motd}",
        "en": "MOTD: {motd}",
    },

    # Notification messages
    "notification.title": {
        "de": "Minecraft-Server {target}",
        "en": "Minecraft server {target}",
    },
    "notification.failed": {
        "de": "Benachrichtigung fehlgeschlagen: {error}",
        "en": "Notification failed: {error}",
    },

    # Auto-update messages
    "autoupdate.started": {
        "de": "Automatische Aktualisierung gestartet (Intervall {interval}s)",
        "en": "Auto-update started (interval {interval}s)",
    },
    "autoupdate.stopped": {
        "de": "Automatische Aktualisierung gestoppt",
        "en": "Auto-update stopped",
    },
    "autoupdate.no_subscriber": {
        "de": "Automatische Aktualisierung benötigt mindestens einen Abonnenten",
        "en": "Auto-update requires at least one subscriber",
    },
    "autoupdate.negative_interval": {
        "de": "Intervall darf nicht negativ sein: {interval}",
        "en": "Interval must not be negative: {interval}",
    },

    # Configuration messages
    "config.invalid_value": {
        "de": "Ungültiger Konfigurationswert für {field}: {value}",
        "en": "Invalid configuration value for {field}: {value}",
    },
    "config.file_not_found": {
        "de": "Konfigurationsdatei nicht gefunden: {path}",
        "en": "Configuration file not found: {path}",
    },
    "config.load_failed": {
        "de": "Konfigurationsdatei konnte nicht gelesen werden: {path}",
        "en": "Configuration file could not be read: {path}",
    },
    "config.file_exists": {
        "de": "Konfigurationsdatei existiert bereits: {path}",
        "en": "Configuration file already exists: {path}",
    },
    "config.created": {
        "de": "Konfigurationsdatei erstellt: {path}",
        "en": "Configuration file created: {path}",
    },
    "config.no_servers": {
        "de": "Keine Server konfiguriert",
        "en": "No servers configured",
    },
}


def get_message(
    key: str,
    language: Optional[str] = None,
    **kwargs,
) -> str:
    """
    Get a translated message by key.

    Args:
        key: The message key (e.g., 'event.player_joined')
        language: Language code ('de' or 'en'). Defaults to DEFAULT_LANGUAGE.
        **kwargs: Format arguments for the message template

    Returns:
        The translated and formatted message string.
        If the key is not found, returns the key itself.
        If the language is not found, falls back to DEFAULT_LANGUAGE.

    Examples:
        >>> get_message('status.online', 'de')
        'Online'
        >>> get_message('event.player_joined', 'en', name='Notch')
        'Player Notch joined'
    """
    if language is None or language not in SUPPORTED_LANGUAGES:
        language = DEFAULT_LANGUAGE

    translations = TRANSLATIONS.get(key)
    if translations is None:
        return key

    message = translations.get(language) or translations.get(DEFAULT_LANGUAGE)
    if message is None:
        return key

    if kwargs:
        try:
            message = message.format(**kwargs)
        except KeyError:
            # Missing placeholder values leave the template unformatted
            pass

    return message


def render_event(event: Event, language: Optional[str] = None) -> str:
    """
    Render an event as a human-readable message.

    Args:
        event: The event to render
        language: Language code ('de' or 'en')

    Returns:
        The rendered message
    """
    payload = event.payload

    if event.kind is EventKind.ONLINE_STATUS_CHANGED:
        key = "event.server_online" if payload.is_online else "event.server_offline"
        return get_message(key, language, text=payload.status_text)

    if event.kind is EventKind.PLAYER_COUNT_CHANGED:
        key = "event.players_joined" if payload.delta > 0 else "event.players_left"
        return get_message(key, language, count=abs(payload.delta))

    key = "event.player_joined" if payload.is_online else "event.player_left"
    return get_message(key, language, name=payload.player_name)


def get_all_message_keys() -> set[str]:
    """Get all available message keys."""
    return set(TRANSLATIONS.keys())


def has_translation(key: str, language: str) -> bool:
    """Check if a translation exists for a key and language."""
    translations = TRANSLATIONS.get(key)
    if translations is None:
        return False
    return language in translations
