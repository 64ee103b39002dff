"""테스트 공용 Fake / 데이터 빌더"""
