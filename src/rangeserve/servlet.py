# =============================================================================
# Imports
# =============================================================================
from typing import List, Optional

from rangeserve.exceptions import Unsatisfiable
from rangeserve.headers import HeaderSet
from rangeserve.output import OutputWriter, StreamOutputWriter
from rangeserve.range import Range, RangeSet
from rangeserve.resource import RangeUnitProvider, Resource


# =============================================================================
# Classes
# =============================================================================
class ResourceServlet:
    """
    Sends a resource in full or in part, depending on the range set parsed
    from the request.

    Args:

        resource (Resource): Supplies the resource to send.  If it is a
            `RangeUnitProvider`, its units are advertised in `Accept-Ranges`
            and range sets in any other unit are refused.

    """

    def __init__(self, resource: Resource):
        self.resource = resource
        self.provides_range_units = isinstance(resource, RangeUnitProvider)

    def _get_accept_ranges(self) -> str:
        if not self.provides_range_units:
            return 'bytes'
        return ','.join(self.resource.get_range_units()) or 'none'

    def _get_default_headers(self) -> HeaderSet:
        return HeaderSet({
            'Content-Type': self.resource.get_mime_type(),
            'Accept-Ranges': self._get_accept_ranges(),
        })

    def _check_unit(self, unit: str) -> None:
        if not self.provides_range_units:
            return
        units = [u.lower() for u in self.resource.get_range_units()]
        if unit.lower() not in units:
            raise Unsatisfiable(f'Unit not handled by this resource: {unit}')

    def _send_headers(
        self, output_writer: OutputWriter, headers: HeaderSet
    ) -> None:
        for (name, value) in headers:
            output_writer.send_header(name.strip(), value.strip())

    def _send_complete_resource(
        self,
        output_writer: OutputWriter,
        headers: HeaderSet,
        include_body: bool,
    ) -> None:
        headers.set_header('Content-Length', str(self.resource.get_length()))
        headers.update(self.resource.get_additional_headers())

        output_writer.set_response_code(200)
        self._send_headers(output_writer, headers)

        if include_body:
            self.resource.send_data(output_writer)

    def _send_resource_ranges(
        self,
        output_writer: OutputWriter,
        headers: HeaderSet,
        range_set: RangeSet,
        include_body: bool,
    ) -> List[Range]:
        size = self.resource.get_length()
        ranges = range_set.get_ranges_for_size(size)
        unit = range_set.unit
        self._check_unit(unit)

        headers.update(self.resource.get_additional_headers())
        headers.set_header(
            'Content-Range',
            get_content_range_header(unit, ranges, size),
        )
        headers.set_header(
            'Content-Length',
            str(sum(r.length for r in ranges)),
        )

        output_writer.set_response_code(206)
        self._send_headers(output_writer, headers)

        if include_body:
            for r in ranges:
                self.resource.send_data(output_writer, r, unit)

        return ranges

    def send_resource(
        self,
        range_set: Optional[RangeSet] = None,
        output_writer: Optional[OutputWriter] = None,
        include_body: bool = True,
    ) -> Optional[List[Range]]:
        """
        Sends the resource.

        Args:

            range_set (RangeSet): Optionally supplies the ranges requested.
                If None, the complete resource is sent with a 200 status.
                Otherwise the satisfiable ranges are sent, merged and in
                ascending order, with a 206 status.

            output_writer (OutputWriter): Optionally supplies the writer the
                response is sent through.  Defaults to a `StreamOutputWriter`
                on standard output.

            include_body (bool): Optionally supplies False to send the status
                and headers only (for HEAD requests); the resource's data is
                then never read.

        Returns:

            List[Range]: The ranges that were sent, or None if the complete
                resource was sent.

        Raises:

            Unsatisfiable: If none of the requested ranges can be satisfied,
                or the range unit is not supported by the resource.  Nothing
                has been written when this is raised.

        """
        if output_writer is None:
            output_writer = StreamOutputWriter()

        headers = self._get_default_headers()

        if range_set is None:
            self._send_complete_resource(output_writer, headers, include_body)
            return None

        return self._send_resource_ranges(
            output_writer,
            headers,
            range_set,
            include_body,
        )


# =============================================================================
# Helpers
# =============================================================================
def get_content_range_header(unit: str, ranges: List[Range], size: int) -> str:
    return '%s %s/%d' % (unit, ','.join(str(r) for r in ranges), size)

# vim:set ts=8 sw=4 sts=4 tw=78 et:                                           #
