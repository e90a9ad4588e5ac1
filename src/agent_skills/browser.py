"""Interactive category/skill browser.

``BrowserState`` is a plain state machine (category list -> skill list) so it
can be driven by tests; ``SkillBrowser`` wires it to a prompt_toolkit
application that feeds it one keypress at a time.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional

from prompt_toolkit.application import Application
from prompt_toolkit.input import Input
from prompt_toolkit.key_binding import KeyBindings
from prompt_toolkit.layout import HSplit, Layout, Window
from prompt_toolkit.layout.controls import FormattedTextControl
from prompt_toolkit.output import Output
from prompt_toolkit.styles import Style

from agent_skills.catalog import Catalog
from agent_skills.models import SkillRecord

StyleFragments = List[tuple]

DESCRIPTION_PREVIEW = 60


class BrowseMode(str, Enum):
    CATEGORY = "category"
    SKILL = "skill"


class BrowseKey(str, Enum):
    UP = "up"
    DOWN = "down"
    SELECT = "select"
    BACK = "back"
    INFO = "info"
    QUIT = "quit"


class BrowseAction(str, Enum):
    INSTALL = "install"
    INFO = "info"
    QUIT = "quit"


@dataclass(frozen=True)
class BrowseSelection:
    """What the user chose when the browser closed."""

    action: BrowseAction
    name: Optional[str] = None


class BrowserState:
    """Cursor positions and mode of the browser.

    Args:
        catalog: Catalog to browse; categories are shown sorted.

    Raises:
        ValueError: If the catalog is empty.
    """

    def __init__(self, catalog: Catalog):
        self.categories = catalog.categories()
        if not self.categories:
            raise ValueError("No skills available")
        self._by_category: Dict[str, List[SkillRecord]] = {
            cat: catalog.filter_by_category(cat) for cat in self.categories
        }
        self.mode = BrowseMode.CATEGORY
        self.category_index = 0
        self.skill_index = 0

    @property
    def current_category(self) -> str:
        return self.categories[self.category_index]

    @property
    def current_skills(self) -> List[SkillRecord]:
        return self._by_category[self.current_category]

    @property
    def current_skill(self) -> Optional[SkillRecord]:
        skills = self.current_skills
        if self.mode is not BrowseMode.SKILL or not skills:
            return None
        return skills[self.skill_index]

    def count(self, category: str) -> int:
        return len(self._by_category.get(category, []))

    def handle(self, key: BrowseKey) -> Optional[BrowseSelection]:
        """Apply one keypress.

        Returns:
            A BrowseSelection when the browser should close, else None.
        """
        if key is BrowseKey.QUIT:
            return BrowseSelection(BrowseAction.QUIT)

        if self.mode is BrowseMode.CATEGORY:
            if key is BrowseKey.UP:
                self.category_index = max(0, self.category_index - 1)
            elif key is BrowseKey.DOWN:
                self.category_index = min(len(self.categories) - 1, self.category_index + 1)
            elif key is BrowseKey.SELECT:
                self.mode = BrowseMode.SKILL
                self.skill_index = 0
            return None

        skills = self.current_skills
        if key is BrowseKey.UP:
            self.skill_index = max(0, self.skill_index - 1)
        elif key is BrowseKey.DOWN:
            self.skill_index = min(len(skills) - 1, self.skill_index + 1)
        elif key is BrowseKey.BACK:
            self.mode = BrowseMode.CATEGORY
        elif key is BrowseKey.SELECT:
            return BrowseSelection(BrowseAction.INSTALL, skills[self.skill_index].name)
        elif key is BrowseKey.INFO:
            return BrowseSelection(BrowseAction.INFO, skills[self.skill_index].name)
        return None


class SkillBrowser:
    """Terminal browser on top of BrowserState.

    Args:
        catalog: Catalog to browse.
        input: prompt_toolkit input (default: the terminal).
        output: prompt_toolkit output (default: the terminal).
    """

    def __init__(
        self,
        catalog: Catalog,
        input: Optional[Input] = None,
        output: Optional[Output] = None,
    ):
        self.state = BrowserState(catalog)
        self.control = FormattedTextControl(self._render, show_cursor=False)
        self.status_control = FormattedTextControl(self._render_status)

        body = HSplit(
            [
                Window(self.control, wrap_lines=False, always_hide_cursor=True),
                Window(height=1, char="─", style="class:muted"),
                Window(self.status_control, height=1),
            ]
        )

        self.app = Application(
            layout=Layout(body),
            key_bindings=self._create_key_bindings(),
            style=Style.from_dict(
                {
                    "title": "bold",
                    "category": "ansicyan",
                    "skill": "ansigreen",
                    "featured": "ansiyellow",
                    "muted": "ansibrightblack",
                }
            ),
            full_screen=False,
            mouse_support=False,
            input=input,
            output=output,
        )

    def _render(self) -> StyleFragments:
        state = self.state
        fragments: StyleFragments = [("class:title", "AI Agent Skills Browser\n\n")]

        if state.mode is BrowseMode.CATEGORY:
            fragments.append(("class:title", "Categories:\n\n"))
            for index, cat in enumerate(state.categories):
                selected = index == state.category_index
                style = "class:category" if selected else ""
                cursor = "▶ " if selected else "  "
                fragments.append((style, f"{cursor}{cat.upper()} ({state.count(cat)})\n"))
            return fragments

        fragments.append(("class:title", f"{state.current_category.upper()}"))
        fragments.append(("class:muted", " (Backspace to go back)\n\n"))
        for index, skill in enumerate(state.current_skills):
            selected = index == state.skill_index
            style = "class:skill" if selected else ""
            cursor = "▶ " if selected else "  "
            fragments.append((style, f"{cursor}{skill.name}"))
            if skill.featured:
                fragments.append(("class:featured", " ★"))
            fragments.append(("", "\n"))
            if selected and skill.description:
                preview = skill.description[:DESCRIPTION_PREVIEW]
                if len(skill.description) > DESCRIPTION_PREVIEW:
                    preview += "..."
                fragments.append(("class:muted", f"    {preview}\n"))
        return fragments

    def _render_status(self) -> StyleFragments:
        if self.state.mode is BrowseMode.CATEGORY:
            hint = "↑↓ navigate · Enter browse category · q quit"
        else:
            hint = "↑↓ navigate · Enter install · i info · Backspace back · q quit"
        return [("class:muted", hint)]

    def _dispatch(self, event, key: BrowseKey) -> None:
        selection = self.state.handle(key)
        if selection is not None:
            event.app.exit(result=selection)

    def _create_key_bindings(self) -> KeyBindings:
        kb = KeyBindings()

        @kb.add("up")
        def _up(event) -> None:
            self._dispatch(event, BrowseKey.UP)

        @kb.add("down")
        def _down(event) -> None:
            self._dispatch(event, BrowseKey.DOWN)

        @kb.add("enter")
        def _select(event) -> None:
            self._dispatch(event, BrowseKey.SELECT)

        @kb.add("backspace")
        @kb.add("escape")
        def _back(event) -> None:
            self._dispatch(event, BrowseKey.BACK)

        @kb.add("i")
        def _info(event) -> None:
            self._dispatch(event, BrowseKey.INFO)

        @kb.add("q")
        @kb.add("c-c")
        def _quit(event) -> None:
            self._dispatch(event, BrowseKey.QUIT)

        return kb

    def run(self) -> BrowseSelection:
        result = self.app.run()
        if isinstance(result, BrowseSelection):
            return result
        return BrowseSelection(BrowseAction.QUIT)


def run_browser(catalog: Catalog) -> BrowseSelection:
    """Run the interactive browser and return the user's choice."""
    return SkillBrowser(catalog).run()
