"""JSON API — controllers, an authenticated route, and a global rate limit.

Every route answers with the JSON envelope. ``500_test`` points at a
controller that is never registered, to show how a failed resolution
turns into a sanitised 500.

Serve with any ASGI server, e.g.:
    uvicorn examples.json_api.app:app
"""

from switchyard import App, AppConfig, AuthMiddleware

config = AppConfig.from_env(global_middleware={"rate_limit": 10})
app = App(config)

LOREM = "Lorem ipsum dolor sit amet"


@app.controller
class MainController:
    def index(self):
        return {"message": LOREM}

    def auth(self, context):
        return {"message": LOREM}


@app.controller
class AboutController:
    def index(self):
        return {"name": "Fabian"}

    def name(self, context):
        return {"name": context.params["name"]}


app.get("", "MainController@index")
app.get("auth", "MainController@auth", [AuthMiddleware()])
app.get("about", "AboutController@index")
app.get("about/{name:string}", "AboutController@name")

# ErrorController does not exist, so this route always answers 500
app.get("500_test", "ErrorController@test")
