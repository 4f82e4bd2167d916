import re
import tomllib
from pathlib import Path

PYPROJECT = Path(__file__).resolve().parent.parent / "pyproject.toml"


def declared_dependencies():
    with PYPROJECT.open("rb") as f:
        project = tomllib.load(f)["project"]
    return {re.split(r"[\[<>=!~ ]", dep, maxsplit=1)[0].lower() for dep in project["dependencies"]}


def test_runtime_dependencies_cover_the_stack():
    deps = declared_dependencies()
    assert {"fastapi", "sqlalchemy", "pymupdf", "passlib", "itsdangerous", "python-json-logger"} <= deps


def test_no_form_parsing_dependency():
    # Every route takes JSON bodies.
    assert "python-multipart" not in declared_dependencies()
