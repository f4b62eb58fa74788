# -*- coding: utf-8 -*-
"""
Internationalization (i18n) module for Timelog.

This module provides translation functions for English and German. The
language follows the viewer locale (see language_for_locale).
Dates and times are not translated here; they come from QLocale in
timelog.services.format_service.
"""

from typing import Optional

from timelog.domain.errors import TimelineError
from timelog.i18n.translations import TRANSLATIONS

# Supported languages
SUPPORTED_LANGUAGES = ["en", "de"]

# Current language (default to English)
_current_language = "en"


def language_for_locale(locale_name: Optional[str]) -> str:
    """
    Map a locale name such as 'de_DE', 'de-AT' or 'en_GB' to a supported language.
    """
    if locale_name:
        language = locale_name.replace('-', '_').split('_')[0].lower()
        if language in SUPPORTED_LANGUAGES:
            return language
    return 'en'


def set_language(lang: str) -> None:
    """
    Set the current language.

    Args:
        lang: Language code ('en' or 'de')
    """
    global _current_language
    if lang not in SUPPORTED_LANGUAGES:
        lang = 'en'
    _current_language = lang


def tr(key: str, language: Optional[str] = None, **kwargs) -> str:
    """
    Get the translated string for the given key.

    Args:
        key: Translation key (e.g., 'day.today')
        language: Override for the current language
        **kwargs: Format arguments for string interpolation

    Returns:
        Translated string, or the key itself if not found.
    """
    lang = language or _current_language
    translations = TRANSLATIONS.get(lang, TRANSLATIONS['en'])
    text = translations.get(key, TRANSLATIONS['en'].get(key, key))

    # Apply format arguments if provided
    if kwargs:
        try:
            text = text.format(**kwargs)
        except (KeyError, ValueError):
            pass

    return text


def error_message(error: TimelineError, language: Optional[str] = None) -> str:
    """User-facing message for a rejected timeline operation."""
    key = f"error.{error.code}"
    text = tr(key, language=language, **error.context)
    if text == key:
        return error.message
    return text
