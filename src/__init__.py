"""Remediation player: prerequisite-ordered video sequencing with quizzes and notion evaluations."""
