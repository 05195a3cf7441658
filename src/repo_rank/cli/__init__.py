"""CLI entry point; registers all subcommands."""

import typer

app = typer.Typer(
    name="repo-rank",
    help="repo-rank - cached code-quality ranks for repositories",
    add_completion=False,
    rich_markup_mode="rich",
)


def main() -> None:
    app()


# Import subcommands to register them
from .check import check as _check, rank as _rank  # noqa: F401, E402
from .cache import cache_info as _cache_info, cache_clear as _cache_clear, cached as _cached  # noqa: F401, E402
from .serve import serve as _serve  # noqa: F401, E402
