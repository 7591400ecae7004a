"""Account management: sign-up, login, password reset, deletion."""
