"""prompt_toolkit key bindings for the mention menu.

Every handler is filtered on the controller having an open session and is
registered eager, so navigation keys are consumed only while the menu is
showing and reach the editor untouched otherwise.
"""

from typing import Callable, Optional

from prompt_toolkit.filters import Condition
from prompt_toolkit.key_binding import KeyBindings

from tag_mentions.controller import MentionController
from tag_mentions.keybindings import DEFAULT_KEYBINDINGS, MentionKeybindingConfig


def _handler(action: Callable[[], bool]):
    def handle(event) -> None:
        action()
    return handle


def build_mention_key_bindings(
    controller: MentionController,
    keys: Optional[MentionKeybindingConfig] = None,
) -> KeyBindings:
    """Build key bindings that route menu keys to ``controller``.

    Args:
        controller: Controller owning the mention session.
        keys: Keybinding config; defaults to the controller's.

    Returns:
        KeyBindings to merge into the application's bindings.
    """
    keys = keys or controller.keybindings
    kb = KeyBindings()
    menu_open = Condition(lambda: controller.is_open)

    actions = {
        "nav_up": controller.navigate_up,
        "nav_down": controller.navigate_down,
        "accept": controller.accept,
        "cancel": controller.cancel,
    }

    for action in DEFAULT_KEYBINDINGS:
        for key in keys.get_keys(action):
            kb.add(key, filter=menu_open, eager=True)(_handler(actions[action]))

    return kb
