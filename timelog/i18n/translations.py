# -*- coding: utf-8 -*-
"""
Translation dictionaries for German and English.

This module contains all translatable labels of the time log.
"""

TRANSLATIONS = {
    "en": {
        # Day titles
        "day.today": "Today",
        "day.yesterday": "Yesterday",

        # Time log page
        "timeline.in_progress": "in progress",
        "timeline.overlap": "Overlaps with {title}",
        "week.total": "Weekly Total",
        "week.no_entries": "No entries this week",

        # Command line
        "cli.started": "Started \"{title}\" at {time}",
        "cli.stopped": "Stopped \"{title}\" after {duration}",
        "cli.deleted": "Deleted entry {entry_id}",
        "cli.updated": "Updated entry {entry_id}",
        "cli.group_updated": "Updated {count} entries",
        "cli.idle": "No entry is running",
        "cli.running": "\"{title}\" running since {time} ({duration})",

        # Errors
        "error": "Error",
        "error.ACTIVE_ENTRY_EXISTS": "Another entry is already running. Stop it first.",
        "error.NO_ACTIVE_ENTRY": "There is no running entry to stop.",
        "error.ENTRY_NOT_FOUND": "The entry does not exist.",
        "error.VALIDATION_ERROR": "Invalid {field}: {reason}",
        "error.START_TIME_IN_FUTURE": "The start time cannot be in the future.",
        "error.END_TIME_IN_FUTURE": "The end time cannot be in the future.",
        "error.END_TIME_BEFORE_START_TIME": "The end time cannot be before the start time.",
    },
    "de": {
        # Day titles
        "day.today": "Heute",
        "day.yesterday": "Gestern",

        # Time log page
        "timeline.in_progress": "läuft",
        "timeline.overlap": "Überschneidet sich mit {title}",
        "week.total": "Wochensumme",
        "week.no_entries": "Keine Einträge in dieser Woche",

        # Command line
        "cli.started": "\"{title}\" um {time} gestartet",
        "cli.stopped": "\"{title}\" nach {duration} gestoppt",
        "cli.deleted": "Eintrag {entry_id} gelöscht",
        "cli.updated": "Eintrag {entry_id} aktualisiert",
        "cli.group_updated": "{count} Einträge aktualisiert",
        "cli.idle": "Es läuft kein Eintrag",
        "cli.running": "\"{title}\" läuft seit {time} ({duration})",

        # Errors
        "error": "Fehler",
        "error.ACTIVE_ENTRY_EXISTS": "Es läuft bereits ein anderer Eintrag. Bitte zuerst stoppen.",
        "error.NO_ACTIVE_ENTRY": "Es gibt keinen laufenden Eintrag.",
        "error.ENTRY_NOT_FOUND": "Der Eintrag existiert nicht.",
        "error.VALIDATION_ERROR": "Ungültiges Feld {field}: {reason}",
        "error.START_TIME_IN_FUTURE": "Die Startzeit darf nicht in der Zukunft liegen.",
        "error.END_TIME_IN_FUTURE": "Die Endzeit darf nicht in der Zukunft liegen.",
        "error.END_TIME_BEFORE_START_TIME": "Die Endzeit darf nicht vor der Startzeit liegen.",
    },
}
