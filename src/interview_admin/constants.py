"""Application-wide constants."""

# Firestore collections
INSTITUTIONS_COLLECTION = "institutions"
DEPARTMENTS_COLLECTION = "departments"
DEPARTMENT_NAMES_COLLECTION = "departmentNames"  # Name index guarding department uniqueness
TEACHERS_COLLECTION = "teachers"
STUDENTS_COLLECTION = "students"
ANALYSIS_COLLECTION = "end-of-call-analysis"

# Member role -> collection under a department
MEMBER_ROLES = {"teacher": TEACHERS_COLLECTION, "student": STUDENTS_COLLECTION}

# Firestore field names
DEPARTMENT_NAME_FIELD = "departmentName"
DEPARTMENT_ID_FIELD = "departmentId"
INSTITUTION_ID_FIELD = "institutionId"
CREATED_AT_FIELD = "createdAt"

# Summary payload keys (LLM JSON embedded in the analysis summary)
SUMMARY_RATING_KEY = "Rating"
SUMMARY_IMPROVEMENTS_KEY = "Areas for Improvement"

# Summary key -> reported category name
SUMMARY_CATEGORIES = {
    SUMMARY_RATING_KEY: "Overall Rating",
    "Communication Skills": "Communication Skills",
    "Technical Knowledge": "Technical Knowledge",
    "Problem Solving": "Problem Solving",
    "Enthusiasm": "Enthusiasm",
}

# Aggregation
DEFAULT_TOP_SKILL_GAPS = 5  # Number of skill gaps reported
MAX_GAP_PERCENTAGE = 100

# Store retry policy (seconds)
DEFAULT_RETRY_INITIAL = 0.5
DEFAULT_RETRY_MAXIMUM = 8.0
DEFAULT_RETRY_MULTIPLIER = 2.0
DEFAULT_RETRY_DEADLINE = 60.0

# AI
DEFAULT_AI_MAX_TOKENS = 1024
DEFAULT_AI_TEMPERATURE = 0.4

# Logging
MAX_DEPARTMENT_NAME_LOG_LENGTH = 60  # Maximum department name length in logs (default)
