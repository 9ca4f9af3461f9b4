"""HTTP transport: one httpx request per attempt, classified into an outcome."""
