"""Pure booking domain rules: lifecycle transitions and display ids."""
