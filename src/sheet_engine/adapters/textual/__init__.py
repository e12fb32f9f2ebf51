"""Textual host integration."""

from .controller import TextualSheetAdapter, TextualUIHooks, clip_text, key_token

__all__ = ["TextualSheetAdapter", "TextualUIHooks", "clip_text", "key_token"]
