from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator
from beanie import PydanticObjectId


class UserCreate(BaseModel):
    name: Optional[str] = None
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class SignIn(BaseModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class UserRecord(BaseModel):
    id: PydanticObjectId
    name: Optional[str] = None
    username: str
    password: str


class TokenData(BaseModel):
    id: PydanticObjectId
    username: str


class ReviewCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    movie_id: PydanticObjectId = Field(..., alias="movieId")
    username: str = Field(..., min_length=1)
    text: str = Field(..., min_length=1, alias="review")
    rating: int = Field(..., ge=0, le=5, description="Rating must be between 0 and 5")

    @field_validator("movie_id", mode="before")
    @classmethod
    def movie_id_required(cls, value):
        # ObjectId(None) would silently mint a new id
        if value is None or value == "":
            raise ValueError("movieId is required")
        return value


# Read models. JSON uses Mongo-style `_id` and camelCase names;
# snake_case names are accepted on input.

class MovieRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)

    id: PydanticObjectId = Field(..., alias="_id")
    title: str
    release_date: Optional[str] = Field(None, alias="releaseDate")
    genre: Optional[str] = None
    actors: List[str] = Field(default_factory=list)


class ReviewRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: PydanticObjectId = Field(..., alias="_id")
    movie_id: PydanticObjectId = Field(..., alias="movieId")
    username: str
    text: str = Field(..., alias="review")
    rating: int


class MovieWithReviews(MovieRecord):
    reviews: List[ReviewRecord] = Field(default_factory=list)
    average_rating: Optional[float] = Field(None, alias="averageRating")


class ReviewWithMovie(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: PydanticObjectId = Field(..., alias="_id")
    movie: Optional[MovieRecord] = Field(None, alias="movieId")
    username: str
    text: str = Field(..., alias="review")
    rating: int


class MovieSeed(BaseModel):
    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)

    title: str = Field(..., min_length=1)
    release_date: Optional[str] = Field(None, alias="releaseDate")
    genre: Optional[str] = None
    actors: List[str] = Field(default_factory=list)
