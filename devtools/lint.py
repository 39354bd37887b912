"""
Format and lint flow. Pass `--check` to only report problems, as in CI.
"""

import subprocess
import sys

from rich import print as rprint

LINT_PATHS = ["flow", "devtools", "conftest.py"]


def lint_commands(check: bool) -> list[list[str]]:
    if check:
        return [
            ["usort", "check", *LINT_PATHS],
            ["ruff", "check", *LINT_PATHS],
            ["black", "--check", *LINT_PATHS],
        ]
    return [
        ["usort", "format", *LINT_PATHS],
        ["ruff", "check", "--fix", *LINT_PATHS],
        ["black", *LINT_PATHS],
    ]


def run_step(cmd: list[str]) -> bool:
    rprint(f"[bold green]❯ {' '.join(cmd)}[/bold green]")
    try:
        subprocess.run(cmd, text=True, check=True)
    except FileNotFoundError:
        rprint(f"[bold red]Not installed: {cmd[0]} (try `poetry install`)[/bold red]")
        return False
    except subprocess.CalledProcessError as e:
        rprint(f"[bold red]Failed with exit status {e.returncode}[/bold red]")
        return False
    finally:
        rprint()
    return True


def main(argv: list[str]) -> int:
    check = "--check" in argv
    rprint()

    failed = [cmd[0] for cmd in lint_commands(check) if not run_step(cmd)]

    if failed:
        rprint(f"[bold red]✗ Lint failed: {', '.join(failed)}[/bold red]")
    else:
        rprint("[bold green]✔️ Lint passed![/bold green]")
    rprint()

    return len(failed)


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
