"""
Survey Builder Editing Core

The in-memory model behind the survey builder: question variants,
conditional visibility, the survey aggregate, undo/redo history and
local draft persistence.

ARCHITECTURAL GUARANTEE:
------------------------
This package contains ZERO knowledge of:
    - Rendering or drag-and-drop mechanics
    - Authentication
    - The remote database behind saved surveys

Remote persistence is consumed through the SurveyRepository port only.
"""

__version__ = "0.1.0"
