from __future__ import annotations

from ._gate import require_arch_checks_enabled
from ._utils import iter_source_files, matches_prefix, package_root, parse_imports


def _offenders(banned: tuple[str, ...], allowlist: set[str], scope: str = "") -> list[str]:
    root = package_root()
    offenders: list[str] = []
    for path in iter_source_files():
        rel = path.relative_to(root).as_posix()
        if not rel.startswith(scope) or rel in allowlist:
            continue
        for item in parse_imports(path):
            if any(matches_prefix(item.module, b) for b in banned):
                offenders.append(f"{rel}:{item.line}: imports {item.module}")
    return offenders


def test_rich_is_only_imported_by_the_console() -> None:
    require_arch_checks_enabled()

    offenders = _offenders(("rich",), {"output/console.py"})
    assert not offenders, "Direct rich usage:\n" + "\n".join(offenders)


def test_subprocess_is_only_imported_by_the_process_wrapper() -> None:
    require_arch_checks_enabled()

    offenders = _offenders(("subprocess",), {"platform/process.py"})
    assert not offenders, "Direct subprocess usage:\n" + "\n".join(offenders)


def test_release_pipeline_does_not_depend_on_the_cli() -> None:
    require_arch_checks_enabled()

    offenders = _offenders(("sdkrel.cli", "typer", "rich"), set(), scope="release/")
    assert not offenders, "release/ must stay CLI-free:\n" + "\n".join(offenders)


def test_core_has_no_internal_dependencies() -> None:
    require_arch_checks_enabled()

    banned = ("sdkrel.release", "sdkrel.output", "sdkrel.platform", "sdkrel.cli")
    offenders = _offenders(banned, set(), scope="core/")
    assert not offenders, "core/ must not import other layers:\n" + "\n".join(offenders)
