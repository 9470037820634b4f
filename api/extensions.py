# api/extensions.py
from flask import current_app

STORAGE_KEY = 'calendar_storage'
ASSISTANT_KEY = 'schedule_assistant'


def get_storage():
    return current_app.extensions[STORAGE_KEY]


def get_assistant():
    return current_app.extensions[ASSISTANT_KEY]
