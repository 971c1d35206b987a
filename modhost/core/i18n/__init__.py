from modhost.core.i18n.bridge import TranslationBridge, TranslationSink, locale_for_file
from modhost.core.i18n.manager import LocalizationManager, TranslationData

__all__ = ["LocalizationManager", "TranslationBridge", "TranslationData", "TranslationSink", "locale_for_file"]
