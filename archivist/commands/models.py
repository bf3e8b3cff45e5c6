"""`archivist models` — show effective role/provider/model configuration."""
from __future__ import annotations

from backend.app.config import MODEL_CONFIG


def register(subparsers) -> None:
    p = subparsers.add_parser("models", help="Show effective model/provider config by role")
    p.set_defaults(func=run)


def run(args) -> int:
    print("Effective LLM model config (after env overrides):")
    print()
    for role in sorted(MODEL_CONFIG):
        cfg = MODEL_CONFIG[role]
        provider = cfg.get("provider", "") or "none"
        model = cfg.get("model", "")
        line = f"- {role}: provider={provider} model={model}"
        if cfg.get("base_url"):
            line += f" base_url={cfg['base_url']}"
        print(line)

    print("\nOverride pattern:")
    print("  ARCHIVIST_<ROLE>_PROVIDER, ARCHIVIST_<ROLE>_MODEL, ARCHIVIST_<ROLE>_BASE_URL")
    print("Example (generation on cloud):")
    print("  ARCHIVIST_GENERATION_PROVIDER=anthropic")
    print("  ARCHIVIST_GENERATION_MODEL=claude-sonnet-4-5-20250929")
    print("  ARCHIVIST_GENERATION_API_KEY=<your-key>")
    print("Disable generation entirely with ARCHIVIST_GENERATION_PROVIDER=none.")
    return 0
