"""Domain entities and repository interfaces for ExamLink."""
