"""Entry point for python -m ingestion."""
import sys

if __name__ == "__main__":
    if len(sys.argv) < 2:
        print("Usage: python -m ingestion <command> [args...]")
        print("Commands: ingest")
        sys.exit(1)

    command = sys.argv[1]

    if command == "ingest":
        from ingestion.ingest import main
        sys.exit(main(sys.argv[2:]))
    else:
        print(f"Unknown command: {command}")
        print("Available commands: ingest")
        sys.exit(1)
