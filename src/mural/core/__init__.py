"""Board core: suggestions, votes, comments, ranking and the board service."""
