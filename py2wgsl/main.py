"""Command line interface for py2wgsl.

Resolves shader items defined in a Python file into WGSL, and prints memory
layouts of schemas.
"""

import importlib.util
import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar, cast

import typer
from loguru import logger

from py2wgsl.config import ResolutionOptions
from py2wgsl.data.decorated import undecorate
from py2wgsl.data.layout import alignment_of, offsets_of, size_of
from py2wgsl.data.loose import Unstruct
from py2wgsl.data.struct import WgslStruct
from py2wgsl.errors import Py2WgslError
from py2wgsl.resolution import resolve

F = TypeVar("F", bound=Callable[..., Any])


def typed_command(app_command: Any) -> Callable[[F], F]:
    """Wrap typer command with proper typing for mypy."""

    def decorator(func: F) -> F:
        return cast(F, app_command(func))

    return decorator


app = typer.Typer(
    name="py2wgsl",
    help="Resolve Python-defined shader items into WGSL. Commands: resolve, layout.",
    add_completion=False,
)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug output"),
) -> None:
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "WARNING")


def _load_module(file_path: str) -> Any:
    """Execute a Python file and return it as a module.

    The file's directory is put on ``sys.path`` so it can import its
    neighbours.
    """
    source = Path(file_path).resolve()
    if not source.is_file():
        raise typer.BadParameter(f"No such file: {file_path}")
    if str(source.parent) not in sys.path:
        sys.path.insert(0, str(source.parent))

    spec = importlib.util.spec_from_file_location(source.stem, source)
    if spec is None or spec.loader is None:
        raise typer.BadParameter(f"Cannot import {file_path}")
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def _load_target(target: str) -> tuple[str, Any]:
    """Load ``path.py:attr`` and return the attribute name and value."""
    path, sep, attr = target.rpartition(":")
    if not sep or not path or not attr:
        raise typer.BadParameter(f"Expected 'path.py:name', got '{target}'")
    module = _load_module(path)
    try:
        return attr, getattr(module, attr)
    except AttributeError:
        raise typer.BadParameter(f"'{path}' defines no '{attr}'") from None


TARGET_ARG = typer.Argument(..., help="Item to load, as path.py:name")


@typed_command(app.command("resolve"))
def resolve_command(
    target: str = TARGET_ARG,
    names: str = typer.Option(
        None, "--names", "-n", help="Naming mode (strict, random)"
    ),
    enable: list[str] = typer.Option(
        [], "--enable", "-e", help="WGSL extension generated code may use"
    ),
    output: Path | None = typer.Option(
        None, "--output", "-o", help="Write the WGSL to this file"
    ),
) -> None:
    """Print the WGSL document of a shader item.

    Example: py2wgsl resolve shaders.py:main_frag --enable f16
    """
    key, item = _load_target(target)
    try:
        options = ResolutionOptions.from_env(
            names=names, enable_extensions=enable or None
        )
        result = resolve(externals={key: item}, options=options)
    except (Py2WgslError, ValueError) as e:
        logger.error(str(e))
        raise typer.Exit(code=1) from e

    for info in result.bindings:
        logger.info(
            f"Binding {info.label}: group {info.group}, index {info.index}, "
            f"{info.usage}"
        )
    if output is not None:
        output.write_text(result.code)
        logger.info(f"WGSL written to {output}")
    else:
        typer.echo(result.code, nl=False)


@typed_command(app.command("layout"))
def layout_command(target: str = TARGET_ARG) -> None:
    """Print size, alignment and member offsets of a schema.

    Example: py2wgsl layout schemas.py:Particle
    """
    _, schema = _load_target(target)
    size = size_of(schema)
    typer.echo(f"size: {size if size is not None else 'runtime-sized'}")
    typer.echo(f"alignment: {alignment_of(schema)}")

    record = undecorate(schema)
    if isinstance(record, (WgslStruct, Unstruct)):
        for name, field in offsets_of(record).items():
            typer.echo(
                f"  {name}: offset {field.offset}, size {field.size}, "
                f"padding {field.padding}"
            )


if __name__ == "__main__":
    app()
