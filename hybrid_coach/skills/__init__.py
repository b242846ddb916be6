from .workout_skills import ActionExecutor, SkillResult, next_weekday_date

__all__ = ["ActionExecutor", "SkillResult", "next_weekday_date"]
