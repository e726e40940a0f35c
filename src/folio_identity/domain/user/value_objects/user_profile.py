"""Profile data carried alongside a user's credentials.

The account lifecycle never interprets these fields; they are stored
and handed back to the profile handlers untouched.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class UserProfile:
    first_name: str = ""
    last_name: str = ""
    first_name_kana: str = ""
    last_name_kana: str = ""
    school_name: str = ""
    department: str = ""
    laboratory: str = ""
    graduation_year: int | None = None
    desired_job_types: tuple[str, ...] = ()
    skills: tuple[str, ...] = ()
    self_introduction: str = ""
    profile_image_url: str = ""
