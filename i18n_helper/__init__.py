"""Fill in the strings missing from Android strings.xml locales with an LLM."""

from .client import CompletionResult, TranslationClient
from .config import ClientConfig
from .diff import compute_delta
from .discovery import discover, split_baseline
from .mapper import to_mapping
from .orchestrator import RunReport, TranslationOrchestrator
from .resources import LocaleResource, append_entries, parse_strings_xml

__version__ = '0.1.0'
