"""
Pack Files

Card packs can be edited as JSON files in PACKS_DIR. Each file holds a
pack header and its cards:

    {
      // comments are allowed
      "pack": {"id": "party", "title": "Party", "levels": ["Light", "Medium"]},
      "cards": [
        {"type": "dare", "text": "High-five {left}.", "level": "Light", "requiresTarget": true}
      ]
    }

The file name (without .json) is the pack ID. Names ending in
``_online`` are online packs, everything else is an offline pack.
"""

import json
import re
from pathlib import Path
from typing import List, Optional, Set, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from sqlalchemy import delete

from .database import DatabaseSession
from .models import Card, CardType, Pack, PackMode, TargetGender, generate_short_id
from ..utils.logging_config import get_logger

logger = get_logger(__name__)

ONLINE_SUFFIX = "_online"

_BLOCK_COMMENT = re.compile(r"/\*.*?\*/", re.DOTALL)
# Line comments, but not the "//" in "https://"
_LINE_COMMENT = re.compile(r"(^|[^:])//.*$", re.MULTILINE)


class PackHeader(BaseModel):
    """Pack metadata from a pack file."""
    model_config = ConfigDict(extra="allow")

    id: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1)
    paid: bool = False
    price: str = "Free"
    levels: List[str] = Field(default_factory=list)


class PackCard(BaseModel):
    """One card entry from a pack file."""
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: Optional[str] = None
    type: CardType
    text: str = Field(..., min_length=1)
    level: str = Field(..., min_length=1)
    requires_target: bool = Field(False, alias="requiresTarget")
    target_gender: Optional[TargetGender] = Field(None, alias="targetGender")


class PackFile(BaseModel):
    """A whole pack file."""
    pack: PackHeader
    cards: List[PackCard]


def strip_json_comments(raw: str) -> str:
    """Remove /* block */ and // line comments from JSON text."""
    cleaned = _BLOCK_COMMENT.sub("", raw)
    return _LINE_COMMENT.sub(r"\1", cleaned)


def pack_id_from_filename(filename: str) -> str:
    return Path(filename).stem


def mode_from_filename(filename: str) -> PackMode:
    return PackMode.ONLINE if pack_id_from_filename(filename).endswith(ONLINE_SUFFIX) else PackMode.OFFLINE


def parse_pack_file(raw: str) -> PackFile:
    """
    Parse and validate pack file contents.

    Raises:
        json.JSONDecodeError: Not valid JSON after removing comments
        pydantic.ValidationError: JSON does not match the pack schema
    """
    return PackFile.model_validate(json.loads(strip_json_comments(raw)))


def load_pack_file(path: Path) -> Optional[PackFile]:
    """Read one pack file; log and return None if it is unusable."""
    try:
        return parse_pack_file(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        logger.warning(f"[packs] invalid json: {path.name} - {e}")
    except ValidationError as e:
        logger.warning(f"[packs] schema error: {path.name} - {e}")
    return None


async def upsert_pack(session, pack_id: str, data: PackFile, mode: PackMode) -> None:
    """Insert or replace a pack and all of its cards."""
    pack = await session.get(Pack, pack_id)
    if pack is None:
        pack = Pack(id=pack_id)
        session.add(pack)

    pack.title = data.pack.title
    pack.paid = data.pack.paid
    pack.price = data.pack.price
    pack.levels = list(data.pack.levels)
    pack.mode = mode

    await session.execute(delete(Card).where(Card.pack_id == pack_id))
    for card in data.cards:
        session.add(Card(
            id=card.id or generate_short_id(),
            type=card.type,
            text=card.text,
            level=card.level,
            pack_id=pack_id,
            requires_target=card.requires_target,
            target_gender=card.target_gender,
        ))


def find_duplicate_card_id(data: PackFile, claimed: Set[str]) -> Optional[str]:
    """First card ID in ``data`` that repeats within the file or is in ``claimed``."""
    seen: Set[str] = set()
    for card in data.cards:
        if not card.id:
            continue
        if card.id in claimed or card.id in seen:
            return card.id
        seen.add(card.id)
    return None


async def sync_packs_from_files(packs_dir) -> List[str]:
    """
    Load every pack file in ``packs_dir`` into the database.

    Valid files replace their pack and cards. Invalid files, and files
    whose card IDs are already taken by an earlier file, are skipped
    with a warning. If at least one file was loaded, packs without a
    file are removed; an empty or missing directory leaves the catalog
    as it is.

    Returns:
        List[str]: IDs of the packs that were loaded
    """
    directory = Path(packs_dir)
    if not directory.is_dir():
        logger.info(f"[packs] no pack directory at {directory}, keeping seeded catalog")
        return []

    files = sorted(directory.glob("*.json"))
    if not files:
        return []

    accepted: List[Tuple[str, PackFile, PackMode]] = []
    claimed: Set[str] = set()
    for path in files:
        data = load_pack_file(path)
        if data is None:
            continue
        duplicate = find_duplicate_card_id(data, claimed)
        if duplicate is not None:
            logger.warning(f"[packs] duplicate card id: {path.name} - {duplicate!r} is already used, skipping file")
            continue
        claimed.update(card.id for card in data.cards if card.id)
        accepted.append((pack_id_from_filename(path.name), data, mode_from_filename(path.name)))

    loaded = [pack_id for pack_id, _, _ in accepted]
    if loaded:
        async with DatabaseSession() as session:
            # Every card is replaced, so file IDs never meet stale rows
            await session.execute(delete(Card))
            for pack_id, data, mode in accepted:
                await upsert_pack(session, pack_id, data, mode)
            await session.execute(delete(Pack).where(Pack.id.not_in(loaded)))

    logger.info(f"[packs] synced {len(loaded)} pack(s) from {directory}: {', '.join(loaded)}")
    return loaded
