POSITIVE_MOODS = ["happy", "excited", "relaxed", "grateful", "confident"]
NEUTRAL_MOODS = ["calm", "thoughtful", "curious", "nostalgic", "bored"]
NEGATIVE_MOODS = ["sad", "angry", "anxious", "stressed", "tired", "lonely"]
MOODS = POSITIVE_MOODS + NEUTRAL_MOODS + NEGATIVE_MOODS
MOOD_GROUPS = {
    **{mood: "positive" for mood in POSITIVE_MOODS},
    **{mood: "neutral" for mood in NEUTRAL_MOODS},
    **{mood: "negative" for mood in NEGATIVE_MOODS},
}
DEFAULT_MOOD = "calm"

MOOD_COLORS = {
    "happy": "#a78bfa",
    "excited": "#c4b5fd",
    "relaxed": "#8b5cf6",
    "grateful": "#a78bfa",
    "confident": "#c4b5fd",
    "calm": "#9ca3af",
    "thoughtful": "#6b7280",
    "curious": "#9ca3af",
    "nostalgic": "#6b7280",
    "bored": "#d1d5db",
    "sad": "#6b7280",
    "angry": "#4b5563",
    "anxious": "#9ca3af",
    "stressed": "#6b7280",
    "tired": "#9ca3af",
    "lonely": "#6b7280",
}
DEFAULT_MOOD_COLOR = "#6366f1"

# Bar colours in the exported analytics report.
MOOD_GROUP_BAR_COLORS = {
    "positive": "#66bb6a",
    "neutral": "#42a5f5",
    "negative": "#ffa726",
}

TIME_SLOTS = [
    ("Morning", 5, 12),
    ("Afternoon", 12, 17),
    ("Evening", 17, 21),
]
NIGHT_SLOT = "Night"
TIME_SLOT_ORDER = [slot for slot, _, _ in TIME_SLOTS] + [NIGHT_SLOT]

PERIOD_LABELS = {
    7: "Last 7 days",
    30: "Last 30 days",
    90: "Last 90 days",
    365: "This year",
    0: "All time",
}

PREBUILT_TAGS = [
    "Work", "Career", "Studies", "Family", "Friends", "Relationships",
    "Health", "Fitness", "Personal Growth", "Self-care", "Hobbies",
    "Travel", "Nature", "Finance", "Spirituality", "Birthday", "Holiday",
    "Vacation", "Celebration", "Exercise", "Reading", "Writing", "Cooking",
    "Meditation", "Yoga", "Music", "Shopping", "Parenting", "Projects",
    "Planning", "Reflection",
]

ENTRIES_TABLE = "journal_entries"
CATEGORIES_TABLE = "categories"
TAGS_TABLE = "tags"
ENTRY_TAGS_TABLE = "entry_tags"

TITLE_MAX_LENGTH = 200
CONTENT_MAX_LENGTH = 10000
TIMELINE_PAGE_SIZE = 10
REPORT_TOP_N = 10
PREVIEW_LENGTH = 150
