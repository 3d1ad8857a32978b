"""Cookbook runner module.

Run cookbook recipes from a dev install. Recipes default to mock mode, so
every one of them works offline; pass ``--no-mock`` for real API calls.

Examples:
- python -m cookbook --list
- python -m cookbook getting-started/send-a-message --prompt "Hello AI"
- python -m cookbook getting-started.stream_a_message --no-mock
"""

from __future__ import annotations

import argparse
from dataclasses import dataclass
from pathlib import Path
import runpy
import sys
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

EXCLUDE_DIRS = {"utils", "__pycache__"}
START_HERE_DISPLAY = "getting-started/send-a-message.py"


@dataclass(frozen=True)
class RecipeSpec:
    """A resolved recipe: absolute path plus the cookbook-relative name."""

    path: Path
    display: str


def cookbook_root() -> Path:
    """Return the absolute path to the cookbook directory."""
    return Path(__file__).resolve().parent


def is_recipe_file(path: Path) -> bool:
    return path.suffix == ".py" and path.name not in {"__init__.py", "__main__.py"}


def list_recipes() -> list[RecipeSpec]:
    """Discover recipe files, skipping helper directories."""
    root = cookbook_root()
    results = [
        RecipeSpec(path=path, display=path.relative_to(root).as_posix())
        for path in root.rglob("*.py")
        if is_recipe_file(path)
        and not any(part in EXCLUDE_DIRS for part in path.relative_to(root).parts)
    ]
    results.sort(key=lambda s: s.display)
    return results


def resolve_spec(spec: str) -> RecipeSpec:
    """Resolve a cookbook-relative path or dotted spec into a recipe.

    ``production.handle_transport_errors`` and
    ``production/handle-transport-errors`` name the same file.
    """
    known = {r.display: r for r in list_recipes()}
    rel = spec.removeprefix("cookbook/")
    candidates = [rel, spec.replace(".", "/").replace("_", "-")]
    for candidate in candidates:
        key = candidate if candidate.endswith(".py") else f"{candidate}.py"
        if key in known:
            return known[key]
    raise FileNotFoundError(
        f"Recipe not found: {spec!r}. Use --list to view available recipes."
    )


def _extract_description(recipe: RecipeSpec) -> str:
    """Return the ``Recipe: <description>`` line of a recipe docstring."""
    try:
        head = recipe.path.read_text().split("\n", 10)
    except OSError:
        return ""
    for line in head:
        stripped = line.strip().strip('"')
        if stripped.startswith("Recipe:"):
            return stripped[len("Recipe:") :].strip().rstrip(".")
    return ""


def print_recipe_list(recipes: Iterable[RecipeSpec]) -> None:
    """Print recipes grouped by directory."""
    grouped: dict[str, list[RecipeSpec]] = {}
    for r in recipes:
        category = r.display.split("/")[0] if "/" in r.display else ""
        grouped.setdefault(category, []).append(r)

    for category, specs in grouped.items():
        print(f"\n  {category.replace('-', ' ').title() or 'Recipes'}")
        for spec in specs:
            name = spec.display.removesuffix(".py")
            marker = "  <- start here" if spec.display == START_HERE_DISPLAY else ""
            print(f"    {name:<42s} {_extract_description(spec)}{marker}")
    print("\n  Run:   python -m cookbook <recipe> [recipe flags]\n")


def run_recipe(recipe: RecipeSpec, passthrough: Sequence[str]) -> int:
    """Execute the recipe in-process with ``sys.argv`` set for it."""
    prev_argv = list(sys.argv)
    sys.argv = [str(recipe.path), *passthrough]
    try:
        runpy.run_path(str(recipe.path), run_name="__main__")
    except SystemExit as exc:
        return exc.code if isinstance(exc.code, int) else 1
    finally:
        sys.argv = prev_argv
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="python -m cookbook",
        description="Claudius cookbook: runnable examples for the client.",
        add_help=False,
    )
    parser.add_argument("spec", nargs="?")
    parser.add_argument("--list", action="store_true")
    raw = list(argv) if argv is not None else sys.argv[1:]
    args, passthrough = parser.parse_known_args(raw)

    if args.list or not args.spec:
        print_recipe_list(list_recipes())
        return 0

    try:
        recipe = resolve_spec(args.spec)
    except FileNotFoundError as exc:
        print(str(exc), file=sys.stderr)
        return 2
    return run_recipe(recipe, [a for a in passthrough if a != "--"])


if __name__ == "__main__":  # pragma: no cover - direct execution guard
    raise SystemExit(main())
