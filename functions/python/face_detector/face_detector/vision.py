"""Module for analyzing compressed images with Cloud Vision."""

import logging
from typing import Any, Dict, Optional

from google.cloud import vision

from storage_trigger.config import StorageTriggerError
from storage_trigger.events import StorageObject
from storage_trigger.storage import StorageClient, build_object_key, object_stem

from .config import FaceDetectorConfig

logger = logging.getLogger(__name__)

JSON_SUFFIX = '.JSON'


class VisionApiError(StorageTriggerError):
    """Raised when Cloud Vision reports an error for a request."""


def response_to_dict(response: vision.AnnotateImageResponse) -> Dict[str, Any]:
    """Serialize a Vision response into a JSON friendly document."""
    return vision.AnnotateImageResponse.to_dict(response)


def check_response(feature: str, response: vision.AnnotateImageResponse) -> None:
    if response.error.message:
        logger.error(f"{feature}: Code={response.error.code} Error={response.error.message}")
        raise VisionApiError(f"{feature} failed: {response.error.message}")


def vertices(bounding_poly) -> list:
    return [(vertex.x, vertex.y) for vertex in bounding_poly.vertices]


class VisionAnalyzer:
    """Run face, label and text detection on images stored in Cloud Storage."""

    def __init__(self, config: FaceDetectorConfig,
                 client: Optional[vision.ImageAnnotatorClient] = None,
                 storage_client: Optional[StorageClient] = None):
        self.config = config
        self.client = client or vision.ImageAnnotatorClient()
        self.storage_client = storage_client or StorageClient()

    def build_image(self, storage_object: StorageObject) -> vision.Image:
        """Reference the object in place; Vision reads it from the bucket."""
        image = vision.Image(source=vision.ImageSource(image_uri=storage_object.uri))
        logger.info(f"VisionImage: Source.ImageUri={image.source.image_uri}")
        return image

    def detect_faces(self, image: vision.Image) -> vision.AnnotateImageResponse:
        logger.info(
            f"VisionDetectFacesInput: ImageUri={image.source.image_uri} "
            f"MaxResults={self.config.max_results}")
        response = self.client.face_detection(image=image, max_results=self.config.max_results)
        check_response('VisionDetectFaces', response)

        logger.info(f"VisionDetectFacesOutput: Faces={len(response.face_annotations)}")
        for index, face in enumerate(response.face_annotations):
            logger.info(
                f"FaceAnnotation: Index={index} "
                f"DetectionConfidence={face.detection_confidence:.3f} "
                f"Joy={face.joy_likelihood.name} Sorrow={face.sorrow_likelihood.name} "
                f"Anger={face.anger_likelihood.name} Surprise={face.surprise_likelihood.name} "
                f"RollAngle={face.roll_angle:.1f} PanAngle={face.pan_angle:.1f} "
                f"TiltAngle={face.tilt_angle:.1f} BoundingPoly={vertices(face.bounding_poly)}")
        return response

    def detect_labels(self, image: vision.Image) -> vision.AnnotateImageResponse:
        logger.info(
            f"VisionDetectLabelsInput: ImageUri={image.source.image_uri} "
            f"MaxResults={self.config.max_results}")
        response = self.client.label_detection(image=image, max_results=self.config.max_results)
        check_response('VisionDetectLabels', response)

        labels = [f"{label.description}:{label.score:.2f}"
                  for label in response.label_annotations]
        logger.info(f"VisionDetectLabelsOutput: Labels={labels}")
        return response

    def detect_text(self, image: vision.Image) -> vision.AnnotateImageResponse:
        logger.info(f"VisionDetectTextInput: ImageUri={image.source.image_uri}")
        response = self.client.text_detection(image=image)
        check_response('VisionDetectText', response)

        text = response.text_annotations[0].description if response.text_annotations else ''
        logger.info(
            f"VisionDetectTextOutput: Annotations={len(response.text_annotations)} "
            f"Locale={response.text_annotations[0].locale if response.text_annotations else None} "
            f"Characters={len(text)}")
        return response

    def store_result(self, storage_object: StorageObject, folder: str,
                     response: vision.AnnotateImageResponse) -> str:
        """Write a detection result as JSON under its folder."""
        key = build_object_key(folder, f"{object_stem(storage_object.name)}{JSON_SUFFIX}")
        logger.info(f"VisionResult: Bucket={storage_object.bucket} Key={key}")
        self.storage_client.upload_json(storage_object.bucket, key, response_to_dict(response))
        return key

    def is_compressed_image(self, storage_object: StorageObject) -> bool:
        folder = self.config.folder_images_compressed.strip('/') + '/'
        return storage_object.name.startswith(folder)

    def process(self, storage_object: StorageObject) -> Dict[str, Any]:
        """Detect faces, labels and text and store each result."""
        storage_object.log()

        if not self.is_compressed_image(storage_object):
            logger.info(
                f"Skipping {storage_object.name}: not in "
                f"{self.config.folder_images_compressed}")
            return {'skipped': True, 'name': storage_object.name}

        image = self.build_image(storage_object)

        faces = self.detect_faces(image)
        faces_path = self.store_result(storage_object, self.config.folder_detect_faces, faces)

        labels = self.detect_labels(image)
        labels_path = self.store_result(storage_object, self.config.folder_detect_labels, labels)

        text = self.detect_text(image)
        text_path = self.store_result(storage_object, self.config.folder_detect_text, text)

        result = {
            'success': True,
            'name': storage_object.name,
            'faces': len(faces.face_annotations),
            'facesPath': faces_path,
            'labels': len(labels.label_annotations),
            'labelsPath': labels_path,
            'textPath': text_path,
        }
        logger.info(f"Processing complete: {result}")
        return result
