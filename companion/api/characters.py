"""Public character catalog."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from database import get_db
from schemas.character import CharacterDetailOut, CharacterOut
from services import characters as catalog

router = APIRouter()


@router.get("", response_model=list[CharacterOut])
def list_characters(db: Session = Depends(get_db)):
    return catalog.list_active(db)


@router.get("/{key}", response_model=CharacterDetailOut)
def get_character(key: str, db: Session = Depends(get_db)):
    character = catalog.get_by_key(db, key)
    if character is None:
        raise HTTPException(status_code=404, detail="Character not found")
    out = CharacterOut.model_validate(character)
    return CharacterDetailOut(**out.model_dump(), average_rating=catalog.average_rating(db, character.id))
