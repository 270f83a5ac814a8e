"""
Day/night illumination model.

The renderer blends day and night imagery per surface point using the
fragment shader below. The functions here compute the same quantities on the
CPU so the sub-solar point and globe rotation handed to the shader can be
checked, and so non-GPU consumers get identical results.
"""
import numpy as np

DAY_NIGHT_SHADER = {
    "vertexShader": """
      varying vec3 vNormal;
      varying vec2 vUv;
      void main() {
        vNormal = normalize(normalMatrix * normal);
        vUv = uv;
        gl_Position = projectionMatrix * modelViewMatrix * vec4(position, 1.0);
      }
    """,
    "fragmentShader": """
      #define PI 3.141592653589793
      uniform sampler2D dayTexture;
      uniform sampler2D nightTexture;
      uniform vec2 sunPosition;
      uniform vec2 globeRotation;
      varying vec3 vNormal;
      varying vec2 vUv;

      float toRad(in float a) {
        return a * PI / 180.0;
      }

      vec3 Polar2Cartesian(in vec2 c) {
        float theta = toRad(90.0 - c.x);
        float phi = toRad(90.0 - c.y);
        return vec3(
          sin(phi) * cos(theta),
          cos(phi),
          sin(phi) * sin(theta)
        );
      }

      void main() {
        float invLon = toRad(globeRotation.x);
        float invLat = -toRad(globeRotation.y);
        mat3 rotX = mat3(
          1, 0, 0,
          0, cos(invLat), -sin(invLat),
          0, sin(invLat), cos(invLat)
        );
        mat3 rotY = mat3(
          cos(invLon), 0, sin(invLon),
          0, 1, 0,
          -sin(invLon), 0, cos(invLon)
        );
        vec3 rotatedSunDirection = rotX * rotY * Polar2Cartesian(sunPosition);
        float intensity = dot(normalize(vNormal), normalize(rotatedSunDirection));
        vec4 dayColor = texture2D(dayTexture, vUv);
        vec4 nightColor = texture2D(nightTexture, vUv);
        float blendFactor = smoothstep(-0.1, 0.1, intensity);
        gl_FragColor = mix(nightColor, dayColor, blendFactor);
      }
    """,
}

# Half-width of the twilight band, in units of cos(angle to the Sun)
TWILIGHT_EDGE = 0.1


def polar_to_cartesian(lng, lat):
    """Unit vector for a (lng, lat) in degrees, y axis through the north pole."""
    theta = np.radians(90.0 - lng)
    phi = np.radians(90.0 - lat)
    return np.array([
        np.sin(phi) * np.cos(theta),
        np.cos(phi),
        np.sin(phi) * np.sin(theta),
    ])


def globe_rotation_matrix(lng, lat):
    """Inverse of the rendered globe's rotation, as the shader builds it.

    GLSL mat3 constructors are column-major, so these are the transposes of
    the literal shader arguments. The result rotates about the vertical axis
    by -lng, then about the horizontal axis by +lat.
    """
    inv_lon = np.radians(lng)
    inv_lat = -np.radians(lat)
    rot_x = np.array([
        [1.0, 0.0, 0.0],
        [0.0, np.cos(inv_lat), np.sin(inv_lat)],
        [0.0, -np.sin(inv_lat), np.cos(inv_lat)],
    ])
    rot_y = np.array([
        [np.cos(inv_lon), 0.0, -np.sin(inv_lon)],
        [0.0, 1.0, 0.0],
        [np.sin(inv_lon), 0.0, np.cos(inv_lon)],
    ])
    return rot_x @ rot_y


def rotated_sun_direction(sun, globe_rotation=(0.0, 0.0)):
    """Sun direction in globe-local space.

    ``sun`` and ``globe_rotation`` are both (lng, lat) pairs in degrees;
    GeographicCoordinate already has that field order.
    """
    sun_lng, sun_lat = sun
    rot_lng, rot_lat = globe_rotation
    return globe_rotation_matrix(rot_lng, rot_lat) @ polar_to_cartesian(sun_lng, sun_lat)


def smoothstep(edge0, edge1, x):
    t = np.clip((x - edge0) / (edge1 - edge0), 0.0, 1.0)
    return t * t * (3.0 - 2.0 * t)


def intensity(normal, sun_direction):
    n = np.asarray(normal, dtype=float)
    s = np.asarray(sun_direction, dtype=float)
    return float(np.dot(n / np.linalg.norm(n), s / np.linalg.norm(s)))


def blend_factor(normal, sun_direction):
    """0.0 is full night imagery, 1.0 full day."""
    return float(smoothstep(-TWILIGHT_EDGE, TWILIGHT_EDGE, intensity(normal, sun_direction)))


def shader_uniforms(sun, globe_rotation=(0.0, 0.0)):
    sun_lng, sun_lat = sun
    rot_lng, rot_lat = globe_rotation
    return {
        "sunPosition": [float(sun_lng), float(sun_lat)],
        "globeRotation": [float(rot_lng), float(rot_lat)],
    }
