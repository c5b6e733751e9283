# Security-critical domain logic, independent of the HTTP layer:
# - field encryption, password hashing and session tokens
# - input whitelisting and validation
# - role policy and the payment application workflow
