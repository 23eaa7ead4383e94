TARGET_AUDIENCE_VALUES = ['all', 'teaching', 'non_teaching', 'specific']
TAKER_STATUS_VALUES = ['pending', 'ongoing', 'completed']
SCHOOL_ADMIN_ROLE_VALUES = ['owner', 'admin', 'guest']

MIN_QUESTION_OPTIONS = 2
MAX_QUESTION_OPTIONS = 4


def _sql_in(values: list[str]) -> str:
    return ', '.join(f"'{value}'" for value in values)


TARGET_AUDIENCE_SQL = _sql_in(TARGET_AUDIENCE_VALUES)
TAKER_STATUS_SQL = _sql_in(TAKER_STATUS_VALUES)
SCHOOL_ADMIN_ROLE_SQL = _sql_in(SCHOOL_ADMIN_ROLE_VALUES)
