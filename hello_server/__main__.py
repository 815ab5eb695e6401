from hello_server.main import run

run()
