"""Operator dashboard for the Cognis task-execution service."""
