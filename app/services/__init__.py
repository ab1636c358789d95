# Services package.
#
# Each module exposes one service class that encapsulates the business
# rules for a single aggregate:
#
#   article_service  - CRUD, slug generation, listing engine, favorites
#   comment_service  - comments under an article
#   user_service     - the authenticated user's own account
#   profile_service  - public profiles and follow edges
#   auth_service     - signup / login token issuing
#   ownership        - author-only guard shared by articles and comments
#
# Services receive their repositories (and cache / clock where relevant)
# through the constructor; ``app.dependencies`` builds them per request on
# top of the ``get_db`` session so the router layer controls the
# transaction boundary.
