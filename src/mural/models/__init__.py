"""Mural data models."""

from mural.models.comment import Comment
from mural.models.suggestion import Suggestion
from mural.models.vote import Vote, VoteResult

__all__ = ["Comment", "Suggestion", "Vote", "VoteResult"]
