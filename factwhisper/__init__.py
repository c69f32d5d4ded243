"""Fact-Whisper: real-time fact checking with whispered corrections on live phone calls."""
