from normalizer.text.blocks import collapse_duplicate_paragraphs, strip_final_tags

__all__ = ["collapse_duplicate_paragraphs", "strip_final_tags"]
