"""Test suite for formstate.

This package contains tests for:
- Built-in validators and the validator dispatcher/registry
- Field and validator configuration, declarative definitions
- Submission state machine transitions (valid and invalid)
- Event system (emission, serialization, field subjects)
- FormEngine validation, modes, reset and disposal
- Integration scenarios (submission outcomes, rendering, concurrency)
- Settings and logging configuration
"""
