#!/usr/bin/env python3

"""
I18n Auto-Translation Script (Android strings.xml)

Finds the strings each values-<locale>/strings.xml of a module is missing
compared to values/strings.xml, asks an OpenAI-compatible chat model to
translate them, and appends the results to each locale file.

Setup:
    pip install -e .
    export I18N_HELPER_API_URL=https://api.example.com/v1/chat/completions
    export I18N_HELPER_API_TOKEN=sk-...
    export I18N_HELPER_MODEL=<model id>

Usage:
    python scripts/i18n-translate.py app
    python scripts/i18n-translate.py app --lang=fr
    python scripts/i18n-translate.py app --dry-run
    python scripts/i18n-translate.py app --max-workers=4 --backup
"""

import sys

from i18n_helper.cli import main


if __name__ == '__main__':
    sys.exit(main())
