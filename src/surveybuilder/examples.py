"""
Example survey builder used by the demo script and tests.

Builds a short customer feedback survey: a Yes/No gate, a text follow-up
shown only to people who answered "Yes", a rating scale, a checkbox whose
answers reveal a second follow-up, and a date question.
"""
from surveybuilder.model import Survey, SurveyMetadata, new_survey
from surveybuilder.questions import (
    CheckboxQuestion,
    ConditionalLogic,
    DateQuestion,
    MultipleChoiceQuestion,
    ScaleQuestion,
    TextQuestion,
)


def build_feedback_survey(title: str = "Customer Feedback") -> Survey:
    survey = new_survey(title)

    likes = MultipleChoiceQuestion(
        id="likes-surveys",
        title="Do you like surveys?",
        required=True,
        options=("Yes", "No"),
    )
    why = TextQuestion(
        id="why-like",
        title="What do you like about them?",
        conditional_logic=ConditionalLogic(depends_on="likes-surveys", show_when=("Yes",)),
    )
    rating = ScaleQuestion(
        id="recommend",
        title="How likely are you to recommend us?",
        min=0,
        max=10,
        min_label="Not at all likely",
        max_label="Extremely likely",
    )
    channels = CheckboxQuestion(
        id="channels",
        title="Where did you hear about us?",
        options=("Search", "Friend", "Advert", "Other"),
    )
    other = TextQuestion(
        id="channels-other",
        title="Tell us where",
        conditional_logic=ConditionalLogic(depends_on="channels", show_when=("Other",)),
    )
    visited = DateQuestion(id="last-visit", title="When did you last visit?")

    return Survey(
        title=survey.title,
        description="Takes about two minutes.",
        questions=(likes, why, rating, channels, other, visited),
        metadata=SurveyMetadata(
            tags=("feedback", "customers"),
            category="Customer Satisfaction",
            allow_anonymous_responses=True,
            estimated_completion_time="2 minutes",
        ),
        created_at=survey.created_at,
        updated_at=survey.updated_at,
    )
