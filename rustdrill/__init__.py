"""Runner for small Rust exercises: compile, run or test them and track progress."""

__version__ = "5.5.1"