"""
Entry point for running surveybuilder as a module.

Usage:
    $ python -m surveybuilder validate survey.json
    $ python -m surveybuilder preview survey.json -a likes-surveys=Yes
    $ python -m surveybuilder drafts list
"""
from .cli import main

if __name__ == "__main__":
    main()
