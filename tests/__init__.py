"""Test suite for lessonprobe.

Test Structure:
- unit/: Unit tests per component (detection, parsers, mapping, processing,
  io, caching, config, cli, utils)
- fixtures/: Sample SCORM 1.2 / 2004 manifests and a story document
"""
