"""
Server operations.

Every function takes the untenanted request session and the request
headers (plus its input) and returns an ActionResult. None of them raise
for anticipated conditions.
"""
