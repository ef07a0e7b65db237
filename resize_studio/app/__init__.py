"""Session facade and bindable state objects.

- One EditingSession per open source image (app.session)
- UI binding via state QObjects (session.params_state / session.render)
"""
