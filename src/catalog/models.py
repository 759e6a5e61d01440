"""
Catalog records.

The backend serves French field names (titre, notions, prerequis, choix,
bonne_reponse, niveau, matiere, mois); the models accept them as aliases and
expose English attribute names. Optional collections that are missing, null
or not lists default to empty.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.catalog.normalize import clean_url, is_http_url, is_youtube_url


def _as_tuple(value: Any) -> tuple:
    if isinstance(value, (list, tuple)):
        return tuple(value)
    return ()


class Question(BaseModel):
    """A multiple-choice quiz question attached to a video."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    prompt: str = Field(alias="question")
    choices: tuple[str, ...] = Field(default=(), alias="choix")
    correct_choice: str = Field(alias="bonne_reponse")
    duration: int | None = Field(default=None, description="Countdown override in ticks")

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_str(cls, value: Any) -> str:
        return str(value)

    @field_validator("choices", mode="before")
    @classmethod
    def _choices_as_tuple(cls, value: Any) -> tuple:
        return tuple(str(choice) for choice in _as_tuple(value))

    def is_correct(self, answer: str) -> bool:
        return answer == self.correct_choice

    def with_choices(self, choices: list[str] | tuple[str, ...]) -> Question:
        return self.model_copy(update={"choices": tuple(choices)})


class VideoRecord(BaseModel):
    """An instructional video with the skills it teaches and its quiz."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    title: str = Field(alias="titre")
    level: str = Field(alias="niveau")
    subject: str | None = Field(default=None, alias="matiere")
    video_url: str = Field(default="", alias="videoUrl")
    skills: tuple[str, ...] = Field(default=(), alias="notions")
    prerequisite_skills: tuple[str, ...] = Field(default=(), alias="prerequis")
    questions: tuple[Question, ...] = ()
    release_months: tuple[str, ...] = Field(default=(), alias="mois")

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_str(cls, value: Any) -> str:
        return str(value)

    @field_validator("video_url", mode="before")
    @classmethod
    def _clean_url(cls, value: Any) -> str:
        return clean_url(value if isinstance(value, str) else None)

    @field_validator("skills", "prerequisite_skills", "release_months", "questions", mode="before")
    @classmethod
    def _default_empty(cls, value: Any) -> tuple:
        return _as_tuple(value)

    @property
    def is_playable(self) -> bool:
        return is_http_url(self.video_url)

    @property
    def is_youtube(self) -> bool:
        return is_youtube_url(self.video_url)

    @property
    def first_release_month(self) -> str | None:
        return self.release_months[0] if self.release_months else None

    def teaches(self, skill: str) -> bool:
        return skill in self.skills

    def shares_skill_with(self, other: VideoRecord) -> bool:
        return any(skill in other.skills for skill in self.skills)

    def has_question(self, question_id: str) -> bool:
        return any(q.id == question_id for q in self.questions)
