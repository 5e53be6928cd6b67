"""Closed option sets shared by the intake form and the blueprint document."""

from __future__ import annotations

from enum import Enum


class Task(str, Enum):
  TEACHING_A_CLASS = "Teaching A Class"
  LEADING_A_WORKSHOP = "Leading A Workshop"
  BUILDING_A_CURRICULUM = "Building A Curriculum"


class Role(str, Enum):
  TEACHER = "Teacher"
  PASTOR_LEADER = "Pastor/Leader"
  YOUTH_LEADER = "Youth Leader"


class DesignType(str, Enum):
  SINGLE_LESSON = "Single Lesson"
  MULTI_WEEK_SERIES = "Multi-Week Series"
  QUARTER_CURRICULUM = "Quarter Curriculum"


class TimeHorizon(str, Enum):
  SINGLE_SESSION = "Single Session"
  WEEKS_4_6 = "4–6 Weeks"
  QUARTER_SEMESTER = "Quarter/Semester"


class AgeGroup(str, Enum):
  CHILDREN = "Children"
  STUDENTS = "Students"
  ADULTS = "Adults"
  MULTI_GENERATIONAL = "Multi-Generational"


class Setting(str, Enum):
  SUNDAY_SCHOOL = "Sunday School"
  SMALL_GROUP = "Small Group"
  YOUTH_GATHERING = "Youth Gathering"
  LEADERSHIP_TRAINING = "Leadership Training"
  MIDWEEK_BIBLE_STUDY = "Midweek Bible Study"
  OTHER = "Other"


class Duration(str, Enum):
  MINUTES_45_60 = "45–60 min"
  MINUTES_75_90 = "75–90 min"
  CUSTOM = "Custom"


class Constraint(str, Enum):
  LIMITED_PREP_TIME = "Limited prep time"
  MIXED_BIBLE_KNOWLEDGE = "Mixed Bible knowledge"
  LOW_ENGAGEMENT = "Low engagement/participation"
  NO_PROJECTOR = "No projector / limited tech"
  SHORT_SESSION_WINDOW = "Short session window"
  HIGH_ENERGY = "High energy / easily distracted group"
  NEW_BELIEVERS = "New believers / little Bible literacy"
  VOLUNTEER_TEACHER = "Volunteer teacher (not trained)"


class Movement(str, Enum):
  INFORM = "Inform"
  INSPIRE = "Inspire"
  INVOLVE = "Involve"


class BloomLevel(str, Enum):
  REMEMBER = "Remember"
  UNDERSTAND = "Understand"
  APPLY = "Apply"
  ANALYZE = "Analyze"
  EVALUATE = "Evaluate"
  CREATE = "Create"


class PlanType(str, Enum):
  SINGLE_SESSION = "Single Session"
  MULTI_SESSION = "Multi-Session"
  QUARTER_SEMESTER = "Quarter/Semester"


# Fixed session lengths for the non-custom duration options.
DURATION_MINUTES: dict[Duration, int] = {Duration.MINUTES_45_60: 60, Duration.MINUTES_75_90: 90}

MIN_SESSION_MINUTES = 10
MAX_SESSION_MINUTES = 240
MAX_CONSTRAINTS = 2


def enum_values(enum_cls: type[Enum]) -> list[str]:
  """Return the wire values of an option set in declaration order."""
  return [str(member.value) for member in enum_cls]
