# activity_app/services/storage_service.py
import logging
from datetime import timedelta
from typing import Iterable, List, Optional

from flask import Flask
from firebase_admin import storage
from google.cloud.exceptions import NotFound

class StorageService:
    """
    댓글/답글 미디어가 저장된 버킷을 다루는 서비스 클래스입니다.
    업로드 자체는 클라이언트가 직접 수행하고, 이 서비스는 조회용 서명 URL 생성과 고아 객체 삭제만 담당합니다.
    """

    def __init__(self):
        """실제 버킷 객체는 init_app 메서드를 통해 주입됩니다."""
        self.bucket = None
        self.url_expiration = timedelta(minutes=60)

    def init_app(self, app: Flask):
        """
        Flask 앱 초기화 과정에서 호출되어 Storage 버킷을 설정합니다.
        버킷 설정이 없으면 미디어 URL 없이 동작합니다.
        """
        self.url_expiration = timedelta(minutes=app.config.get('MEDIA_URL_EXPIRATION_MINUTES', 60))
        bucket_name = app.config.get('FIREBASE_STORAGE_BUCKET')
        if not bucket_name:
            logging.warning("StorageService: FIREBASE_STORAGE_BUCKET 설정이 없어 미디어 기능이 비활성화됩니다.")
            return
        self.bucket = storage.bucket(bucket_name)
        logging.info("StorageService: Storage 버킷이 성공적으로 초기화되었습니다.")

    def generate_media_url(self, photo_key: Optional[str]) -> Optional[str]:
        """
        미디어 키에 대한 조회(GET) 전용 서명 URL 을 생성합니다.

        :param photo_key: 버킷 내 객체 경로
        :return: 서명 URL, 키가 없거나 버킷이 없으면 None
        """
        if not photo_key or not self.bucket:
            return None
        blob = self.bucket.blob(photo_key)
        return blob.generate_signed_url(version="v4", expiration=self.url_expiration, method="GET")

    def delete_objects(self, keys: Iterable[str]) -> List[str]:
        """
        객체들을 삭제하고 실제로 삭제된 키 목록을 반환합니다. 이미 없는 객체는 건너뜁니다.
        """
        if not self.bucket:
            raise RuntimeError("StorageService가 초기화되지 않았습니다. init_app을 먼저 호출해주세요.")

        deleted = []
        for key in {k for k in keys if k}:
            try:
                self.bucket.blob(key).delete()
                deleted.append(key)
            except NotFound:
                logging.info(f"이미 삭제된 미디어 객체입니다: {key}")
        return deleted
