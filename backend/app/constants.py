"""Centralized tuning constants and static canon tables shared across the app."""
from __future__ import annotations

# Retrieval limits (Context Assembler)
CONTEXT_MAX_DOCUMENTS = 6
CONTEXT_MAX_CHUNKS = 12
FORBIDDEN_TERMS_MAX = 80
FORBIDDEN_TERM_MIN_LEN = 2  # exclusive
FORBIDDEN_TERM_MAX_LEN = 80  # exclusive

# Episode label used in source citations
EPISODE_LABEL_PREFIX = "MAG"

# Forbidden-term scanning
FORBIDDEN_MATCH_LIMIT = 10
FORBIDDEN_TERM_MIN_NORMALIZED_LEN = 3

# Seed anchoring
SEED_ANCHOR_LIMIT = 12
SEED_ANCHOR_MIN_LEN = 4

# Prompt embedding limits (characters)
PROMPT_OUTLINE_MAX_CHARS = 6000
PROMPT_CONTEXT_MAX_CHARS = 9000
PROMPT_FORBIDDEN_TERMS_MAX = 80
TRUNCATE_HEAD_RATIO = 0.7
TRUNCATE_ELISION = "\n\n[...]\n\n"

# Model adapter recovery
ADAPTER_CONTEXT_RETRY_CHARS = 12000
ADAPTER_CONTEXT_RETRY_MAX_TOKENS = 1200
ADAPTER_TRANSIENT_RETRY_DELAY_S = 0.3

# Metadata suggestion
METADATA_TRANSCRIPT_MAX_CHARS = 12000
METADATA_MAX_FEARS = 3

# Draft shape thresholds
DRAFT_MIN_CHARS = 1200
DRAFT_MAX_SECTION_MARKERS = 2
DRAFT_MAX_LIST_LINES = 8
DRAFT_MAX_SCRIPT_LINES = 6
DRAFT_MAX_STAGE_DIRECTIONS = 4
DRAFT_MIN_PARAGRAPHS = 5
DRAFT_MIN_PARAGRAPH_CHARS = 60

# The fourteen canonical fears plus The Extinction.
FEAR_CANONICAL: tuple[str, ...] = (
    "The Beholding",
    "The Buried",
    "The Corruption",
    "The Dark",
    "The Desolation",
    "The End",
    "The Extinction",
    "The Flesh",
    "The Hunt",
    "The Lonely",
    "The Slaughter",
    "The Spiral",
    "The Stranger",
    "The Vast",
    "The Web",
)

# Established cast: may be reused when cast carryover is granted.
CANON_CAST_NAMES: tuple[str, ...] = (
    "Jonathan Sims",
    "Jon Sims",
    "Martin Blackwood",
    "Tim Stoker",
    "Sasha James",
    "Elias Bouchard",
    "Gertrude Robinson",
    "Melanie King",
    "Basira Hussain",
    "Daisy Tonner",
    "Georgie Barker",
    "Peter Lukas",
    "Jonah Magnus",
    "Michael Shelley",
    "Oliver Banks",
    "Adelard Dekker",
    "Jurgen Leitner",
    "Agnes Montague",
    "Jude Perry",
    "Jared Hopworth",
    "Manuela Dominguez",
    "Annabelle Cane",
    "Simon Fairchild",
    "Mike Crew",
    "Nikola Orsinov",
)

# Institutions, entities, artifacts and fixed archival phrases: allowed only
# under explicit canon carryover.
CANON_NON_CAST_TERMS: tuple[str, ...] = (
    "Magnus Institute",
    "Magnus Archives",
    "Head Archivist",
    "The Archivist",
    "Ceaseless Watcher",
    "Eye of the Beholding",
    "Statement begins",
    "Statement ends",
    "End recording",
    "Recording ends",
    "Archivist's note",
    "Leitner book",
    "Leitner library",
    "Web Table",
    "The Unknowing",
    "The Watcher's Crown",
    "The Distortion",
    "Circus of the Other",
    "People's Church of the Divine Host",
    "Hilltop Road",
    "Mr. Spider",
    "The Coffin",
    "Great Dancer",
    "Section 31",
    "Usher Foundation",
    "Fairchild family",
    "Lukas family",
    "Ny-Alesund",
)

# Words that never count as seed anchors.
ANCHOR_STOPWORDS: frozenset[str] = frozenset(
    {
        "about", "above", "after", "again", "against", "also", "among", "another",
        "around", "because", "been", "before", "behind", "being", "below", "between",
        "both", "came", "come", "could", "does", "doing", "down", "during", "each",
        "even", "every", "from", "further", "have", "having", "here", "into", "just",
        "like", "made", "make", "many", "more", "most", "much", "must", "never",
        "only", "other", "over", "same", "some", "something", "still", "such",
        "than", "that", "their", "them", "then", "there", "these", "they", "thing",
        "things", "this", "those", "through", "under", "until", "upon", "very",
        "want", "were", "what", "when", "where", "which", "while", "will", "with",
        "within", "without", "would", "your", "story", "episode", "statement",
        "horror", "write", "please", "should", "keep", "notes", "note",
        "start", "begins", "ends", "itself", "himself", "herself", "someone",
    }
)

# Tone presets: id -> style description. The first entry is the default.
TONE_PRESETS: dict[str, str] = {
    "classic": "Classic archival horror: understated, formal statement voice.",
    "modern": "Modern horror: sharper pacing, cinematic clarity, restrained dialogue.",
    "experimental": "Experimental: fragmented, unsettling pacing, uncanny transitions.",
}
DEFAULT_TONE = "classic"

# Length presets: id -> (outline guidance, draft guidance). "episode" is the default.
LENGTH_PRESETS: dict[str, tuple[str, str]] = {
    "short": (
        "Short outline: aim for 2,000-3,000 words in the final draft.",
        "Target 2,000-3,000 words.",
    ),
    "episode": (
        "Episode outline: aim for 6,000-9,000 words in the final draft.",
        "Target 6,000-9,000 words.",
    ),
    "long": (
        "Long outline: aim for 10,000+ words in the final draft.",
        "Target 10,000+ words.",
    ),
}
DEFAULT_LENGTH = "episode"
