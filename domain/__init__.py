"""Pure domain layer: catalog and ledger records plus the summary engine. No I/O."""
