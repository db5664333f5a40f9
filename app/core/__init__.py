"""Cross-cutting pieces shared by the data layer and the views."""
