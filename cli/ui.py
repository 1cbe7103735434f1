from __future__ import annotations

from typing import Callable, Dict, Optional, Sequence, TypeVar

T = TypeVar("T")


def print_header(title: str) -> None:
    print("\n========================================")
    print(title)
    print("========================================\n")


def print_section(title: str) -> None:
    print(f"\n{title}")


def _read_choice(n: int) -> int:
    """Read a 1..n choice (0-based result). 'Z' exits."""
    while True:
        choice = input(f"Enter number (1-{n}) or Z to exit: ").strip()
        if not choice:
            print("Please enter a number or Z to exit.")
            continue
        if choice.upper() == "Z":
            print("Exiting (Z selected).")
            raise SystemExit(0)
        if choice.isdigit():
            k = int(choice)
            if 1 <= k <= n:
                return k - 1
        print(f"Invalid choice. Please enter 1-{n} or Z.")


def choose_from_menu(title: str, options: Dict[str, object]) -> str:
    """Show a 1..N menu of keys in 'options' and return the chosen key."""
    keys = list(options.keys())
    print("\n" + title)
    for idx, key in enumerate(keys, start=1):
        val = options[key]
        if isinstance(val, dict) and "label" in val:
            label = str(val["label"])
        else:
            label = str(val)
        print(f"[{idx}] {label} ({key})")
    return keys[_read_choice(len(keys))]


def select_from_list(title: str, items: Sequence[T], formatter: Callable[[T, int], str]) -> T:
    """Numbered list of arbitrary items; ``formatter(item, index)`` renders one row."""
    if not items:
        raise ValueError(f"nothing to select for: {title}")
    print("\n" + title)
    for idx, item in enumerate(items, start=1):
        print(f"  {formatter(item, idx)}")
    return items[_read_choice(len(items))]


def _prompt_text(prompt: str, default: Optional[str] = None) -> str:
    """Prompt for free-text input with an optional default."""
    if default is not None:
        raw = input(f"{prompt} [{default}]: ").strip()
        return raw or str(default)
    return input(f"{prompt}: ").strip()


def _prompt_yes_no(prompt: str, *, default: bool = False) -> bool:
    """Prompt for a yes/no question."""
    suffix = "Y/n" if default else "y/N"
    while True:
        raw = input(f"{prompt} ({suffix}): ").strip().lower()
        if not raw:
            return default
        if raw in {"y", "yes"}:
            return True
        if raw in {"n", "no"}:
            return False
        print("Please enter y or n.")
