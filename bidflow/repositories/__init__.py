# Persistence helpers. Each function takes the Session explicitly and
# commits its own unit of work.
