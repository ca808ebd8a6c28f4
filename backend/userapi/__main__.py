from userapi.main import run

run()
