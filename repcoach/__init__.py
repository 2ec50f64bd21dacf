"""RepCoach: real-time exercise repetition counting from pose landmarks."""
