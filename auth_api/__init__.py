"""Account service: signup/activation, signin, password reset and federated login."""
