AUTH_SECRET = "switchboard-test-secret-0123456789abcdef"
