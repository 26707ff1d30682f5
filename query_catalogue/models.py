"""
Document schemas

Pydantic models describing the documents stored in the catalogue collections. The queries never
use them; they validate datasets before the seeder writes them.

Collection names follow the pluralised lowercase convention:
- User -> "users"
- Author -> "authors"
- Book -> "books"
"""

from datetime import datetime
from typing import Any, ClassVar, Dict, List, Literal

from pydantic import BaseModel, ConfigDict, Field


class Location(BaseModel):
    country: str
    address: str


class Company(BaseModel):
    title: str
    email: str = Field(..., pattern=r"\S+@\S+\.\S+", description="Company email address")
    phone: str
    location: Location


class User(BaseModel):
    """
    Users collection schema
    Collection name: "users"
    """
    collection_name: ClassVar[str] = "users"

    index: int = Field(..., description="Numeric position of the user in the dataset")
    name: str
    isActive: bool = Field(False, description="Whether the user is active")
    registered: datetime
    age: int
    gender: Literal["male", "female", "other"]
    eyeColor: str
    favoriteFruit: str
    company: Company
    tags: List[str] = Field(default_factory=list)

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump()


class Author(BaseModel):
    """
    Authors collection schema
    Collection name: "authors"
    """
    model_config = ConfigDict(populate_by_name=True)
    collection_name: ClassVar[str] = "authors"

    id: int = Field(..., alias="_id")
    name: str
    birth_year: int

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


class Book(BaseModel):
    """
    Books collection schema
    Collection name: "books"
    """
    model_config = ConfigDict(populate_by_name=True)
    collection_name: ClassVar[str] = "books"

    id: int = Field(..., alias="_id")
    title: str
    author_id: int = Field(..., description="_id of the book's author (not enforced)")
    genre: str

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)
