# backend/wsgi.py
# FLASK_APP=wsgi.py  (python -m flask run / python -m flask <group> <command>)
from pesopos import create_app

app = create_app()

if __name__ == "__main__":
    app.run(debug=True)
