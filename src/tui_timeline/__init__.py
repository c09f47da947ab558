"""TUI Timeline - terminal Gantt timeline for project/task tracker exports."""
