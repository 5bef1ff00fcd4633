"""Solana framework detection from manifests and entry points."""

from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from ..logging_config import get_logger

logger = get_logger(__name__)

ANCHOR = "anchor"
METAPLEX = "metaplex"
NATIVE = "native"
UNKNOWN = "unknown"

# Checked in order; first framework with a marker present wins
_ROOT_MANIFEST_MARKERS: Tuple[Tuple[str, Sequence[str]], ...] = (
    (ANCHOR, ("anchor-lang", "anchor-spl")),
    (METAPLEX, ("mpl-token-metadata", "metaplex")),
    (NATIVE, ("solana-program", "solana-sdk", "spl-token", "spl-associated-token-account")),
)

_PROGRAM_MANIFEST_MARKERS: Tuple[Tuple[str, Sequence[str]], ...] = (
    (ANCHOR, ("anchor-lang",)),
    (METAPLEX, ("mpl-token-metadata",)),
    (NATIVE, ("solana-program",)),
)

_MEMBER_MANIFEST_MARKERS: Tuple[Tuple[str, Sequence[str]], ...] = (
    (ANCHOR, ("anchor-lang",)),
    (NATIVE, ("solana-program",)),
)

_ENTRY_POINT_MARKERS: Tuple[Tuple[str, Sequence[str]], ...] = (
    (
        ANCHOR,
        (
            "anchor_lang",
            "#[program]",
            "Context<",
            "derive(Accounts)",
            "declare_id!",
            "anchor_spl",
        ),
    ),
    (METAPLEX, ("mpl_token_metadata", "metaplex", "create_metadata_accounts")),
    (
        NATIVE,
        (
            "solana_program",
            "entrypoint!",
            "process_instruction",
            "invoke",
            "AccountInfo",
            "Pubkey",
        ),
    ),
)


def _match_markers(text: str, markers: Sequence[Tuple[str, Sequence[str]]]) -> Optional[str]:
    for framework, needles in markers:
        if any(needle in text for needle in needles):
            return framework
    return None


def _read(path: Path) -> Optional[str]:
    if not path.is_file():
        return None
    return path.read_text(encoding="utf-8", errors="replace")


def _workspace_members(manifest_text: str) -> List[str]:
    try:
        import tomllib
    except ModuleNotFoundError:
        import tomli as tomllib  # type: ignore

    data = tomllib.loads(manifest_text)
    members = data.get("workspace", {}).get("members", [])
    return [m for m in members if isinstance(m, str)]


def _detect(root: Path) -> str:
    root_manifest = _read(root / "Cargo.toml")
    if root_manifest is not None:
        found = _match_markers(root_manifest, _ROOT_MANIFEST_MARKERS)
        if found:
            logger.debug(f"Detected {found} from Cargo.toml")
            return found

    if (root / "Anchor.toml").is_file():
        logger.debug("Detected anchor from Anchor.toml")
        return ANCHOR

    for entry in ("lib.rs", "main.rs"):
        entry_text = _read(root / "src" / entry)
        if entry_text is not None:
            found = _match_markers(entry_text, _ENTRY_POINT_MARKERS)
            if found:
                logger.debug(f"Detected {found} from src/{entry}")
                return found
            break

    programs_dir = root / "programs"
    if programs_dir.is_dir():
        for program in sorted(programs_dir.iterdir()):
            program_manifest = _read(program / "Cargo.toml")
            if program_manifest is None:
                continue
            found = _match_markers(program_manifest, _PROGRAM_MANIFEST_MARKERS)
            if found:
                logger.debug(f"Detected {found} from {program.name}/Cargo.toml")
                return found

    if root_manifest is not None and "[workspace]" in root_manifest:
        for member in _workspace_members(root_manifest):
            for member_dir in sorted(root.glob(member)):
                member_manifest = _read(member_dir / "Cargo.toml")
                if member_manifest is None:
                    continue
                found = _match_markers(member_manifest, _MEMBER_MANIFEST_MARKERS)
                if found:
                    logger.debug(f"Detected {found} from workspace member {member_dir.name}")
                    return found

    return UNKNOWN


def detect_framework(root: Path) -> str:
    """Classify a repository as ``anchor``, ``metaplex``, ``native`` or ``unknown``.

    Never raises: unreadable files and invalid manifests yield ``unknown``.
    """
    root = Path(root)
    if not root.is_dir():
        logger.warning(f"Cannot detect framework, not a directory: {root}")
        return UNKNOWN
    try:
        return _detect(root)
    except Exception as e:
        logger.warning(f"Failed to detect framework for {root}: {e}")
        return UNKNOWN
