"""Tests for the ExamLink engine, stores and HTTP layer."""
