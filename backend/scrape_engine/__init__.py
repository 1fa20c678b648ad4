"""Job-board scraping orchestration engine."""
