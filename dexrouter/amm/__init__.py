"""AMM math and venue instruction encoding."""
