"""Allow `python -m conversation_extractor`."""
from conversation_extractor.cli import main

raise SystemExit(main())
