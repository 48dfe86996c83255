# Tag mentions package
#
# Single import surface for the inline "#tag" mention feature:
#
#   from tag_mentions import (
#       DocumentEngine, MentionController, with_tags,
#       paragraph, to_text, to_markup,
#   )
#
# Lazy loading: imports are deferred via __getattr__ so the core works
# without prompt_toolkit; only TagCompleter and build_mention_key_bindings
# need it.

# Mapping from public name -> (module_path, attribute_name)
_LAZY_IMPORTS = {
    # Document model
    "Text": (".document", "Text"),
    "Element": (".document", "Element"),
    "ElementKind": (".document", "ElementKind"),
    "Point": (".document", "Point"),
    "Range": (".document", "Range"),
    "paragraph": (".document", "paragraph"),
    "tag_element": (".document", "tag_element"),
    "initial_document": (".document", "initial_document"),
    "node_from_dict": (".document", "node_from_dict"),
    "DocumentError": (".document", "DocumentError"),
    "InvalidPathError": (".document", "InvalidPathError"),
    "StaleRangeError": (".document", "StaleRangeError"),
    # Engine
    "DocumentEngine": (".engine", "DocumentEngine"),
    "EditorEngine": (".engine", "EditorEngine"),
    "ScreenRect": (".engine", "ScreenRect"),
    # Mention core
    "VocabularyStore": (".vocabulary", "VocabularyStore"),
    "load_vocabulary": (".vocabulary", "load_vocabulary"),
    "filter_candidates": (".candidate_filter", "filter_candidates"),
    "TriggerScanner": (".scanner", "TriggerScanner"),
    "match_trigger": (".scanner", "match_trigger"),
    "MentionSession": (".session", "MentionSession"),
    "insert_tag": (".insertion", "insert_tag"),
    "with_tags": (".insertion", "with_tags"),
    "MentionController": (".controller", "MentionController"),
    "OverlayPosition": (".controller", "OverlayPosition"),
    "MenuItem": (".controller", "MenuItem"),
    # Serialization
    "to_text": (".serializer", "to_text"),
    "to_markup": (".serializer", "to_markup"),
    # Configuration
    "MentionConfig": (".config", "MentionConfig"),
    "load_config": (".config", "load_config"),
    "MentionKeybindingConfig": (".keybindings", "MentionKeybindingConfig"),
    "load_keybindings": (".keybindings", "load_keybindings"),
    # prompt_toolkit integration
    "TagCompleter": (".completer", "TagCompleter"),
    "build_mention_key_bindings": (".pt_bindings", "build_mention_key_bindings"),
}


def __getattr__(name):
    if name in _LAZY_IMPORTS:
        module_path, attr_name = _LAZY_IMPORTS[name]
        import importlib
        module = importlib.import_module(module_path, __name__)
        value = getattr(module, attr_name)
        globals()[name] = value
        return value
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = list(_LAZY_IMPORTS)
