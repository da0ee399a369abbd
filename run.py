# run.py
from dotenv import load_dotenv
import os
basedir = os.path.abspath(os.path.dirname(__file__))
# 실행 파일과 같은 디렉터리의 .env 를 먼저 로드합니다.
load_dotenv(dotenv_path=os.path.join(basedir, '.env'))

from app import create_app

app = create_app()

if __name__ == '__main__':
    host = os.getenv('FLASK_RUN_HOST', '127.0.0.1')
    port = int(os.getenv('FLASK_RUN_PORT', 5000))
    debug = app.config.get('DEBUG', False)
    # 실시간 피드(SSE)는 요청마다 스레드를 점유하므로 threaded 로 실행합니다.
    app.run(host=host, port=port, debug=debug, threaded=True)
